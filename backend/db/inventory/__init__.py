"""
Per-store inventory.

Models:
- InventoryStock (quantity per product per store, unique on the pair)
- InventoryMovement (append-only audit of IN / OUT / TRANSFER movements)
"""
