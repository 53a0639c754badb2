"""Infrastructure layer: concrete repository backends and database wiring."""
