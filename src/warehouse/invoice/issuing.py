"""Invoice issuing — command and handler."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from warehouse.domain import warehouse
from warehouse.invoice.invoice import Invoice


@warehouse.command(part_of="Invoice")
class IssueInvoice:
    """Send a draft invoice to the client."""

    invoice_id = Identifier(required=True)


@warehouse.command_handler(part_of=Invoice)
class IssueInvoiceHandler:
    @handle(IssueInvoice)
    def issue_invoice(self, command):
        repo = current_domain.repository_for(Invoice)
        invoice = repo.get(command.invoice_id)
        invoice.issue()
        repo.add(invoice)
        return str(invoice.id)
