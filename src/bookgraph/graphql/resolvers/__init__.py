"""Resolver functions for the GraphQL schema.

Each module registers its functions with ``bookgraph.graphql.registry`` under
the (type, field) pair they serve; the types and root operations are then
assembled from that table.
"""
