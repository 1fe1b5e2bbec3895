"""GraphQL object types. Importing a type module registers its resolvers."""
