"""Storefront API: products, users and JWT auth over a relational database."""
