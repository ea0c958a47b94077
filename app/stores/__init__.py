"""
Stores application.

The marketplace side the escrow engine depends on: stores and their staff,
orders, and buyer return requests. Catalog, checkout and storefront concerns
live elsewhere; only what the escrow engine reads or updates is modelled here.

Usage:
    from stores.models import Order, ReturnRequest
    from stores.services import StoreService
"""
