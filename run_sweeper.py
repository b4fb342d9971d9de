#!/usr/bin/env python
"""
Script to run the stale PENDING order sweeper
"""
from storefront.tasks.pending_order_sweeper import start_sweeper

if __name__ == "__main__":
    start_sweeper()
