"""Persistence stores for customers, products, invoices and items."""
