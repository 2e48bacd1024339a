"""Built-in target bundles for include_targets."""
