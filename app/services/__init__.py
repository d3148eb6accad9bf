"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services turn repository results into HTTP-level outcomes (404, named
domain errors) and build the xlsx exports. Routers own the commit.
"""
