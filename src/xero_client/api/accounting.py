"""Accounting API facade (organisations, invoices, contacts)."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from xero_client.api.base import BaseApi


class AccountingApi(BaseApi):
    """Operations against ``/api.xro/2.0``, scoped to one tenant per call.

    Requests look like::

        orgs = await client.accounting_api.get_organisations(client.tenant_ids[0])
    """

    async def get_organisations(self, tenant_id: str) -> dict[str, Any]:
        return await self._request("GET", "Organisation", tenant_id=tenant_id)

    async def get_invoices(
        self,
        tenant_id: str,
        *,
        where: str | None = None,
        order: str | None = None,
        statuses: Iterable[str] | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        """List invoices; ``statuses`` is sent comma separated."""
        params = {
            "where": where,
            "order": order,
            "Statuses": ",".join(statuses) if statuses else None,
            "page": page,
        }
        return await self._request("GET", "Invoices", tenant_id=tenant_id, params=params)

    async def get_invoice(self, tenant_id: str, invoice_id: str) -> dict[str, Any]:
        return await self._request("GET", f"Invoices/{invoice_id}", tenant_id=tenant_id)

    async def create_invoices(
        self, tenant_id: str, invoices: Iterable[Mapping[str, Any]]
    ) -> dict[str, Any]:
        return await self._request(
            "PUT",
            "Invoices",
            tenant_id=tenant_id,
            json={"Invoices": [dict(i) for i in invoices]},
        )

    async def get_contacts(
        self,
        tenant_id: str,
        *,
        where: str | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET", "Contacts", tenant_id=tenant_id, params={"where": where, "page": page}
        )
