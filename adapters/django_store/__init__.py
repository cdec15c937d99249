"""
Storefront Django Store
=========================
Relational persistence for products, stock movements and orders.
"""
