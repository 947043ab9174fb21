"""
Infrastructure layer - booking and payment settlement.

Concrete adapters for the application ports.

Structure:
- db/: SQLAlchemy Core tables, engine lifecycle and SQL repositories
- gateways/: Stripe payment gateway and HTTP notification publisher
- in_memory/: in-process store and repositories (local runs, tests)
- messaging/: periodic background workers
- circuit_breaker.py: pybreaker breakers for external calls
- seed.py: demo catalog and coupons
"""
