"""GraphQL API: schema, types, resolvers and request-scoped loaders."""
