# sistemas/crm/__init__.py
