"""HTTP blueprints for the Travel Expenses API."""
