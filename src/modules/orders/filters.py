import django_filters

from modules.orders.models import CancellationLog, Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    payment_status = django_filters.CharFilter(field_name="payment_status", lookup_expr="iexact")
    customer = django_filters.CharFilter(field_name="customer_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "customer",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]


class CancellationLogFilter(django_filters.FilterSet):
    role = django_filters.CharFilter(field_name="cancelled_by_role", lookup_expr="iexact")
    refund_processed = django_filters.BooleanFilter(field_name="refund_processed")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = CancellationLog
        fields = ["role", "refund_processed", "start_date", "end_date"]
