"""Domain layer: model, registry, matching, consistency protocol and workflows."""
