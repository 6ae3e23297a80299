from cloudprep.cli import main

main()
