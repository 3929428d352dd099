# sistemas/notificacoes/__init__.py
