# sistemas/planejamento/__init__.py
"""
Planejamento previdenciário: upload de documentos, análise do CNIS,
pendências e parecer
"""
