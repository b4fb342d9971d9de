"""
EcoHaven checkout service
"""
