"""Product catalog service: authoritative product store and stock reconciler."""
