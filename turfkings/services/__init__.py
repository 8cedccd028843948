"""
Service layer: validation, rotation engine, match ledger, match session.
No persistence writes here; the API wires the ledger to the snapshot store.
Import from the submodules (turfkings.roster depends on services.validation).
"""
