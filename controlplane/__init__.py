"""HTTP control plane recording clusters and their prepare/cleanup runs."""
