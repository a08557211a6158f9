import django_filters

from modules.returns.models import ReturnRequest


class ReturnRequestFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    reason = django_filters.CharFilter(field_name="reason", lookup_expr="iexact")
    order = django_filters.UUIDFilter(field_name="order_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = ReturnRequest
        fields = ["status", "reason", "order", "start_date", "end_date"]
