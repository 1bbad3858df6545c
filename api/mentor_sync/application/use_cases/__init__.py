"""
Casos de uso del sync con Airtable.
"""
