"""Domain layer: models, error types and services of the team balancer."""
