"""Domain managers: one per resource, each wrapping the gateway."""
