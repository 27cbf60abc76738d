# Services package init
"""
Voyage Teams Backend: Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database.
How:   Every service method takes the request's AsyncSession as `db` and,
       for writes, an AuthenticatedCaller. Services are stateless singletons.

Service Inventory:
    - MembershipService: identity resolution (authorization gate), team check
    - CatalogService:    categories → team items → voters read model
    - VoteService:       vote ledger, one vote per member per item, cascade
    - SelectionService:  capped, atomic bulk selection updates
    - ProposalService:   new tech item + proposer's first vote
    - UserService:       caller profile with team memberships
"""
