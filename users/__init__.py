# users/__init__.py
