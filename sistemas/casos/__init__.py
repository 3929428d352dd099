# sistemas/casos/__init__.py
"""
Clientes, casos, atividades, comentários e tags
"""
