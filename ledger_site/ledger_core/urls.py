from django.urls import path

from . import views

urlpatterns = [
    path("accounts/", views.account_list, name="account-list"),
    path("accounts/templates/", views.account_template,
         name="account-template"),
    path("accounts/<int:pk>/", views.account_detail, name="account-detail"),
    path("contacts/", views.contact_list, name="contact-list"),
    path("contacts/<int:pk>/", views.contact_detail, name="contact-detail"),
    path("journal/", views.journal_list, name="journal-list"),
    path("journal/<int:pk>/", views.journal_detail, name="journal-detail"),
    path("invoices/", views.invoice_list, name="invoice-list"),
    path("invoices/<int:pk>/", views.invoice_detail, name="invoice-detail"),
    path("bills/", views.bill_list, name="bill-list"),
    path("bills/<int:pk>/", views.bill_detail, name="bill-detail"),
    path("reports/trial-balance/", views.trial_balance_report,
         name="report-trial-balance"),
    path("reports/profit-loss/", views.profit_loss_report,
         name="report-profit-loss"),
    path("reports/balance-sheet/", views.balance_sheet_report,
         name="report-balance-sheet"),
    path("reports/aged-receivables/", views.aged_receivables_report,
         name="report-aged-receivables"),
    path("reports/aged-payables/", views.aged_payables_report,
         name="report-aged-payables"),
    path("dashboard/stats/", views.dashboard_stats, name="dashboard-stats"),
]
