"""
HealthFinder API — Routes Package
===================================

Route Inventory:
    - clinics.py:  /clinics, /clinics/reviews, /clinics/{id},
                   /clinics/{id}/reviews, POST /clinics/{id}/review
    - health.py:   GET /health

Routes stay thin: parse the request, call a service, shape the response.
"""
