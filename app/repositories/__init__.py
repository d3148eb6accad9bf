"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
One repository per aggregate (volunteers, notebooks, attendances), each a
module-level singleton extending BaseRepository. Lifecycle transitions are
guarded UPDATE statements; repositories never commit.
"""
