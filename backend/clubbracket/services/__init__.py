"""
Services Layer

Bracket and draw logic that:
- Accepts ids and a Session, returns models or plain dicts
- Raises NotFoundError / BadRequestError (services.errors), never HTTPException
- Owns its transaction boundaries (commit / rollback) unless told otherwise
"""
