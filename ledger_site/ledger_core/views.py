import json
import logging
import re
from functools import wraps

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .exceptions import (InfrastructureError, LedgerStateError,
                         LedgerValidationError, NumberConflictError,
                         RecordNotFound)
from .services import (accounts, aging, bills, contacts, dashboard,
                       invoicing, journal, reports)
from .services.values import to_optional_date

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------
# Thin JSON layer over the services.
# The tenant always comes from request.company (middleware), never
# from the payload. Requests use camelCase keys, so do responses.
# ---------------------------------------------------------------

_CAMEL = re.compile(r"_([a-z0-9])")
_SNAKE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camelize(data):
    """Recursively turn snake_case dict keys into camelCase."""
    if isinstance(data, dict):
        return {
            _CAMEL.sub(lambda m: m.group(1).upper(), key)
            if isinstance(key, str) else key: camelize(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [camelize(item) for item in data]
    return data


def snake_keys(data):
    # Top-level keys only: nested user maps (customFieldValues) stay as sent
    return {_SNAKE.sub(lambda m: "_" + m.group(1).lower(), key): value
            for key, value in data.items()}


def _json(data, status=200):
    return JsonResponse(data, status=status, encoder=DjangoJSONEncoder,
                        safe=False)


def _body(request):
    try:
        payload = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        raise LedgerValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise LedgerValidationError("Request body must be a JSON object")
    return snake_keys(payload)


def _lines(payload):
    raw = payload.get("lines")
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(x, dict) for x in raw):
        raise LedgerValidationError("lines must be a list of objects")
    return [snake_keys(line) for line in raw]


def _error_text(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


def ledger_api(view):
    """
    Resolve the tenant and translate service errors to HTTP statuses:
    not found → 404, wrong state / number conflict → 409,
    invalid input → 400, store unavailable → 503.
    """
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        company = getattr(request, "company", None)
        if company is None:
            return _json({"error": "Unauthorized"}, status=401)
        try:
            return view(request, company, *args, **kwargs)
        except RecordNotFound as exc:
            return _json({"error": _error_text(exc)}, status=404)
        except (LedgerStateError, NumberConflictError) as exc:
            return _json({"error": _error_text(exc)}, status=409)
        except ValidationError as exc:
            return _json({"error": _error_text(exc)}, status=400)
        except InfrastructureError as exc:
            logger.error("Request %s %s failed: %s",
                         request.method, request.path, exc)
            return _json({"error": "Report temporarily unavailable"},
                         status=503)
    return wrapper


# ---------- Serializers ----------
def account_data(account, depth=None):
    data = {
        "id": account.pk,
        "code": account.code,
        "name": account.name,
        "type": account.ac_type,
        "description": account.description,
        "parentId": account.parent_id,
        "isActive": account.is_active,
        "normalBalance": account.normal_balance,
    }
    if depth is not None:
        data["depth"] = depth
    return data


def _tree_data(nodes):
    # explicit stack: charts of accounts can nest deeper than the call stack
    roots = []
    stack = [(node, roots) for node in reversed(nodes)]
    while stack:
        node, siblings = stack.pop()
        data = {**account_data(node["account"], node["depth"]), "children": []}
        siblings.append(data)
        stack.extend((child, data["children"])
                     for child in reversed(node["children"]))
    return roots


def contact_data(contact):
    return {
        "id": contact.pk,
        "code": contact.code,
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "type": contact.contact_type,
        "creditTerms": contact.credit_terms,
        "creditLimit": contact.credit_limit,
    }


def journal_data(je):
    lines = list(je.lines.all())
    return {
        "id": je.pk,
        "entryNo": je.entry_no,
        "date": je.date,
        "description": je.description,
        "reference": je.reference,
        "totalDebit": sum((line.debit for line in lines), 0),
        "totalCredit": sum((line.credit for line in lines), 0),
        "lines": [
            {
                "id": line.pk,
                "accountId": line.account_id,
                "accountCode": line.account.code,
                "accountName": line.account.name,
                "description": line.description,
                "debit": line.debit,
                "credit": line.credit,
            }
            for line in lines
        ],
    }


def invoice_data(invoice, with_lines=False):
    data = {
        "id": invoice.pk,
        "invoiceNo": invoice.invoice_no,
        "contactId": invoice.contact_id,
        "contactName": invoice.contact.name,
        "date": invoice.date,
        "dueDate": invoice.due_date,
        "status": invoice.status,
        "displayStatus": invoice.display_status(),
        "subtotal": invoice.subtotal,
        "taxTotal": invoice.tax_total,
        "total": invoice.total,
        "notes": invoice.notes,
        "templateId": invoice.template_ref,
        "customFieldValues": invoice.custom_field_values,
    }
    if with_lines:
        data["lines"] = [
            {
                "id": line.pk,
                "itemName": line.item_name,
                "itemCode": line.item_code,
                "description": line.description,
                "quantity": line.quantity,
                "unitPrice": line.unit_price,
                "discount": line.discount,
                "taxRate": line.tax_rate,
                "amount": line.amount,
            }
            for line in invoice.lines.all()
        ]
    return data


def bill_data(bill):
    return {
        "id": bill.pk,
        "billNo": bill.bill_no,
        "contactId": bill.contact_id,
        "contactName": bill.contact.name,
        "date": bill.date,
        "dueDate": bill.due_date,
        "status": bill.status,
        "total": bill.total,
        "notes": bill.notes,
    }


# ---------- Accounts ----------
@require_http_methods(["GET", "POST"])
@ledger_api
def account_list(request, company):
    if request.method == "POST":
        p = _body(request)
        account = accounts.create_account(
            company, p.get("code"), p.get("name"), p.get("type"),
            parent_id=p.get("parent_id"), description=p.get("description"))
        return _json(account_data(account), status=201)

    forest = accounts.build_hierarchy(accounts.list_accounts(company))
    if request.GET.get("tree"):
        return _json(_tree_data(forest))
    return _json([account_data(acc, depth)
                  for acc, depth in accounts.flatten_hierarchy(forest)])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@ledger_api
def account_detail(request, company, pk):
    if request.method == "DELETE":
        accounts.delete_account(company, pk)
        return _json({"success": True})
    if request.method in ("PUT", "PATCH"):
        p = _body(request)
        changes = {key: p[key] for key in
                   ("code", "name", "description", "parent_id", "is_active")
                   if key in p}
        if "type" in p:
            changes["ac_type"] = p["type"]
        account = accounts.update_account(company, pk, **changes)
        return _json(account_data(account))
    return _json(account_data(accounts.get_account(company, pk)))


@require_http_methods(["POST"])
@ledger_api
def account_template(request, company):
    p = _body(request)
    created = accounts.create_accounts_from_template(company, p.get("industry"))
    return _json({"created": len(created),
                  "accounts": [account_data(acc) for acc in created]},
                 status=201)


# ---------- Contacts ----------
def _contact_fields(p):
    fields = {key: p[key] for key in
              ("code", "email", "phone", "credit_terms", "credit_limit")
              if key in p}
    if "type" in p:
        fields["contact_type"] = p["type"]
    return fields


@require_http_methods(["GET", "POST"])
@ledger_api
def contact_list(request, company):
    if request.method == "POST":
        p = _body(request)
        contact = contacts.create_contact(company, p.get("name"),
                                          **_contact_fields(p))
        return _json(contact_data(contact), status=201)
    return _json([contact_data(c) for c in
                  contacts.list_contacts(company, request.GET.get("type"))])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@ledger_api
def contact_detail(request, company, pk):
    if request.method == "DELETE":
        contacts.delete_contact(company, pk)
        return _json({"success": True})
    if request.method in ("PUT", "PATCH"):
        p = _body(request)
        changes = _contact_fields(p)
        if "name" in p:
            changes["name"] = p["name"]
        contact = contacts.update_contact(company, pk, **changes)
        return _json(contact_data(contact))
    return _json(contact_data(contacts.get_contact(company, pk)))


# ---------- Journal ----------
@require_http_methods(["GET", "POST"])
@ledger_api
def journal_list(request, company):
    if request.method == "POST":
        p = _body(request)
        je = journal.create_journal_entry(
            company, p.get("date"), _lines(p) or [],
            description=p.get("description"), reference=p.get("reference"))
        return _json(journal_data(journal.get_journal_entry(company, je.pk)),
                     status=201)

    entries = journal.list_entries(
        company,
        date_from=to_optional_date(request.GET.get("dateFrom"), "dateFrom"),
        date_to=to_optional_date(request.GET.get("dateTo"), "dateTo"),
    )
    return _json([journal_data(je) for je in entries])


@require_http_methods(["GET", "DELETE"])
@ledger_api
def journal_detail(request, company, pk):
    if request.method == "DELETE":
        journal.delete_journal_entry(company, pk)
        return _json({"success": True})
    return _json(journal_data(journal.get_journal_entry(company, pk)))


# ---------- Invoices ----------
def _invoice_changes(p):
    changes = {}
    for key in ("contact_id", "date", "due_date", "notes",
                "custom_field_values"):
        if key in p:
            changes[key] = p[key]
    if "template_id" in p:
        changes["template_ref"] = p["template_id"]
    lines = _lines(p)
    if lines is not None:
        changes["lines"] = lines
    return changes


@require_http_methods(["GET", "POST"])
@ledger_api
def invoice_list(request, company):
    if request.method == "POST":
        p = _body(request)
        # client totals (subtotal / taxTotal / total / amount) are ignored
        invoice = invoicing.create_invoice(
            company, p.get("contact_id"), p.get("date"), p.get("due_date"),
            _lines(p) or [], notes=p.get("notes"),
            template_ref=p.get("template_id"),
            custom_field_values=p.get("custom_field_values"))
        invoice = invoicing.get_invoice(company, invoice.pk)
        return _json(invoice_data(invoice, with_lines=True), status=201)

    invoices = invoicing.list_invoices(
        company,
        status=request.GET.get("status"),
        contact_id=request.GET.get("contactId"),
        date_from=to_optional_date(request.GET.get("dateFrom"), "dateFrom"),
        date_to=to_optional_date(request.GET.get("dateTo"), "dateTo"),
    )
    return _json([invoice_data(inv) for inv in invoices])


@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@ledger_api
def invoice_detail(request, company, pk):
    if request.method == "DELETE":
        invoicing.delete_invoice(company, pk)
        return _json({"success": True})
    if request.method == "PATCH":
        p = _body(request)
        invoicing.transition_status(company, pk, p.get("status"))
    elif request.method == "PUT":
        p = _body(request)
        invoicing.update_invoice(company, pk, **_invoice_changes(p))
    return _json(invoice_data(invoicing.get_invoice(company, pk),
                              with_lines=True))


# ---------- Bills ----------
@require_http_methods(["GET", "POST"])
@ledger_api
def bill_list(request, company):
    if request.method == "POST":
        p = _body(request)
        bill = bills.create_bill(
            company, p.get("contact_id"), p.get("date"), p.get("due_date"),
            p.get("total"), bill_no=p.get("bill_no"), notes=p.get("notes"))
        return _json(bill_data(bill), status=201)
    return _json([bill_data(b) for b in
                  bills.list_bills(company, request.GET.get("status"))])


@require_http_methods(["GET", "PATCH"])
@ledger_api
def bill_detail(request, company, pk):
    if request.method == "PATCH":
        p = _body(request)
        bills.transition_bill(company, pk, p.get("status"))
    return _json(bill_data(bills.get_bill(company, pk)))


# ---------- Reports ----------
def _range(request):
    return (to_optional_date(request.GET.get("dateFrom"), "dateFrom"),
            to_optional_date(request.GET.get("dateTo"), "dateTo"))


def _as_of(request):
    # balance sheet and aging take a single date
    return to_optional_date(
        request.GET.get("asOf") or request.GET.get("dateTo"), "asOf")


@require_http_methods(["GET"])
@ledger_api
def trial_balance_report(request, company):
    return _json(camelize(reports.trial_balance(company, *_range(request))))


@require_http_methods(["GET"])
@ledger_api
def profit_loss_report(request, company):
    return _json(camelize(reports.profit_and_loss(company, *_range(request))))


@require_http_methods(["GET"])
@ledger_api
def balance_sheet_report(request, company):
    return _json(camelize(reports.balance_sheet(company, _as_of(request))))


@require_http_methods(["GET"])
@ledger_api
def aged_receivables_report(request, company):
    return _json(camelize(aging.aged_receivables(company, _as_of(request))))


@require_http_methods(["GET"])
@ledger_api
def aged_payables_report(request, company):
    return _json(camelize(aging.aged_payables(company, _as_of(request))))


# ---------- Dashboard ----------
@require_http_methods(["GET"])
@ledger_api
def dashboard_stats(request, company):
    return _json(camelize(dashboard.dashboard_summary(company)))
