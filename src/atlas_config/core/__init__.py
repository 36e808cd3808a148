# src/atlas_config/core/__init__.py
"""
Core do Atlas Config.

Este pacote reúne a implementação canônica do motor de resolução de
configuração: agregação de fontes por ordinal, cadeia de filtros,
resolução de expressões e o contexto com snapshot em cache.

Componentes principais:
    - spi          → contratos (PropertySource, PropertyFilter, ExpressionResolver) e tipos
    - sources      → fontes e providers de referência (mapa, ambiente, sistema, arquivos)
    - aggregation  → ordinal, carregamento com prazo e merge determinístico
    - filters      → FilterChain e filtros embutidos
    - resolver     → ExpressionEvaluator e resolvers embutidos
    - settings     → settings do próprio motor (YAML/JSON, deep-merge, hash)
    - context      → ConfigurationContext e ConfigurationSnapshot

Princípios fundamentais:
    - Nenhuma decisão silenciosa: ausente, nulo e não resolvido são distinguíveis
    - Falhas locais são recuperadas e registradas no EventLog
    - Apenas ConfigurationError chega ao chamador

Limites explícitos:
    - Não injeta valores por reflexão (ver `binding`)
    - Não define transporte de rede nem formatos próprios de arquivo
"""
