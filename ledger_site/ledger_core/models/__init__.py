from .account import Account
from .bill import Bill
from .contact import Contact
from .entitymembership import Company, EntityMembership
from .invoice import Invoice, InvoiceLine
from .journal import JournalEntry, JournalLine
from .sequence import CompanySequence
