"""Domain layer: entity models, repository contracts and pure services."""
