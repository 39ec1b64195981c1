from django.utils.deprecation import MiddlewareMixin

from .models import EntityMembership


class CurrentCompanyMiddleware(MiddlewareMixin):
    # Run on every request and
    # attach a .company attribute to the request, based on the logged-in user
    def process_request(self, request):
        request.company = None
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            # Unauthenticated users
            return

        memberships = (EntityMembership.objects
                       .filter(user=user, is_active=True)
                       .select_related("company"))

        # If user switched companies,
        # choice is stored in the session as "active_company_id"
        company_id = request.session.get("active_company_id")
        if company_id:
            try:
                company_id = int(company_id)
            except (TypeError, ValueError):
                return
            # ensure security: user must be a member of that company,
            # so a tampered session cannot “jump” into another tenant
            membership = memberships.filter(company_id=company_id).first()
            request.company = membership.company if membership else None
            return

        # Default company fallback: the membership flagged is_default,
        # or the only one the user has
        membership = memberships.filter(is_default=True).first()
        if membership is None:
            only = list(memberships[:2])
            membership = only[0] if len(only) == 1 else None
        request.company = membership.company if membership else None
