# Routes package init
"""
Voyage Teams Backend: API Routes Package
=========================================

Route Inventory:
    - techs.py:   GET    /api/voyages/teams/{team_id}/techs             (catalog)
                  PATCH  /api/voyages/teams/{team_id}/techs/selections  (bulk selection)
                  POST   /api/voyages/teams/{team_id}/techs             (propose tech)
                  POST   /api/voyages/teams/{team_id}/techs/{tech_id}   (vote)
                  DELETE /api/voyages/teams/{team_id}/techs/{tech_id}   (remove vote)
    - users.py:   GET    /api/users/me
    - health.py:  GET    /health

Routes stay thin: resolve the caller and session through dependencies, call
one service method, return its result. Status codes for failures come from
the exception handler in main.py.
"""
