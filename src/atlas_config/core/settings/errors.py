# src/atlas_config/core/settings/errors.py
"""
Exceções canônicas da camada de settings do Atlas Config.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, validação estrutural e resolução dos settings do motor
(os parâmetros que governam o próprio motor de configuração, e não as
propriedades resolvidas por ele).

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao usuário

Invariantes:
    - Todas as exceções de settings herdam de `SettingsError`
    - Nenhuma exceção representa falha de fonte, filtro ou resolver

Limites explícitos:
    - Não realiza fallback ou recovery
    - Não depende do ConfigurationContext

Este módulo existe para garantir clareza,
consistência e previsibilidade no tratamento de erros de settings.
"""


class SettingsError(Exception):
    """
    Exceção base para erros relacionados aos settings do Atlas Config.

    Todas as exceções levantadas durante carregamento, validação estrutural
    e merge de settings devem herdar desta classe.

    Limites explícitos:
        - Não representa falha de agregação de fontes
        - Não representa falha de resolução de expressões
    """


class SettingsFileNotFoundError(SettingsError):
    """
    Exceção levantada quando um arquivo de settings informado explicitamente
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - Caminhos informados são obrigatórios quando presentes
        - Nenhum arquivo é criado ou inferido automaticamente
    """


class UnsupportedSettingsFormatError(SettingsError):
    """
    Exceção levantada quando o formato do arquivo de settings não é suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidSettingsRootTypeError(SettingsError):
    """
    Exceção levantada quando o conteúdo raiz do arquivo não é um dicionário.

    Invariantes:
        - O loader só opera sobre estruturas do tipo dicionário
    """


class ConfigTypeConflictError(SettingsError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"resolution": {"mask_unresolved": true}}
        - override: {"resolution": "strict"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """


class InvalidSettingsError(SettingsError):
    """
    Exceção levantada quando o dicionário resolvido não corresponde
    ao schema de `ContextSettings` (chave desconhecida ou tipo inválido).
    """
