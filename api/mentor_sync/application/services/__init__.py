"""
Servicios de aplicacion del sync con Airtable.
"""
