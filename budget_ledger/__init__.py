"""Monthly budget ledger package.

Modules:
- config: configuration, ledger defaults and DB path persistence
- db: connection helpers
- repository: durable key/value storage in sqlite
- models: expense records and amount/date helpers
- errors: error taxonomy and operation results
- store: ledger state, month rollover and persistence
- exporter: CSV export of months and history
- ui: UI helpers (items, edit dialog, summary chart)
- app: main window and entry point
"""
