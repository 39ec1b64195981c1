from .account import AccountAdmin
from .bill import BillAdmin
from .contact import ContactAdmin
from .inlines import InvoiceLineInline, JournalLineInline
from .invoice import InvoiceAdmin
from .journal import JournalEntryAdmin, JournalLineAdmin
from .membership import CompanyAdmin, CompanySequenceAdmin, EntityMembershipAdmin
from .mixins import TenantAdminMixin
