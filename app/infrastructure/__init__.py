"""
Infrastructure layer: concrete implementations of the application ports.

Layout:
- db/: SQLAlchemy tables, engine and SQL repositories
- gateways/: crypto payment gateway adapters (Binance Pay, GatePay, NOWPayments)
- providers/: travel provider clients (Amadeus, Duffel)
- notifications/: email rendering and delivery, in-app notifications
- in_memory/: in-memory repositories and stubs for local runs and tests
- messaging/: background workers
"""
