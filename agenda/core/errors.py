"""Erros de domínio.

Os serviços não conhecem HTTP: levantam estas exceções e o handler
registrado em ``agenda.main`` as converte em ``{"detail": ...}`` com o
status apropriado.
"""

from __future__ import annotations


class AgendaError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(AgendaError):
    """Entrada do cliente inválida (campos faltando, data malformada...)."""

    status_code = 400


class NotFoundError(AgendaError):
    status_code = 404


class ConflictError(AgendaError):
    status_code = 409


class UpstreamError(AgendaError):
    """Falha de leitura no banco; nunca vira lista vazia de horários."""

    status_code = 503
