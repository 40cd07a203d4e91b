"""
Delivery Performance Reporting

Delivery timeliness and review score reports over an e-commerce snapshot.
"""
