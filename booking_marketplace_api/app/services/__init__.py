"""
Service layer abstraction.

Each service encapsulates the store access for one marketplace entity.
Services raise ``core.errors.ServiceError`` subclasses for expected
failures and leave the HTTP mapping to the application's exception
handlers.
"""
