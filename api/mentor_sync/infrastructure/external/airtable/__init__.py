"""
Integracion bidireccional con Airtable para perfiles de mentor.

- field_mapper: traduccion pura perfil <-> fields
- airtable_client: REST client con rate limit por instancia
- Postgres es el sistema de registro; Airtable es la vista operativa.
"""
