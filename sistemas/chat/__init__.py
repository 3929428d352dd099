# sistemas/chat/__init__.py
