"""HTTP application serving the GraphQL API."""
