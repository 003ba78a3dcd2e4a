from prometheus_client import Counter, Histogram


class CommerceMetrics:
    """
    Commerce fulfillment metrics collector

    Tracks checkout outcomes, webhook handling, redemptions and status mirror writes
    """

    def __init__(self):
        # ========== Checkout ==========
        self.checkout_requests = Counter(
            'commerce_checkout_requests_total',
            'Checkout attempts by outcome',
            ['unit_kind', 'payment_method', 'result'],  # result: created/<error code>
        )

        self.checkout_duration = Histogram(
            'commerce_checkout_duration_seconds',
            'Checkout processing time',
            ['unit_kind', 'payment_method'],
            buckets=[0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0],
        )

        # ========== Payment webhook ==========
        self.webhook_events = Counter(
            'commerce_payment_webhook_events_total',
            'Payment notifications by type and outcome',
            ['event_type', 'result'],  # result: applied/noop/ignored/rejected
        )

        # ========== Redemption ==========
        self.redemptions = Counter(
            'commerce_redemptions_total',
            'Redemption scans by mode and outcome',
            ['mode', 'result'],
        )

        # ========== Status mirror ==========
        self.mirror_writes = Counter(
            'commerce_status_mirror_writes_total',
            'Status mirror writes',
            ['subject', 'result'],  # result: ok/failed
        )

        # ========== Reservation sweeper ==========
        self.expired_reservations = Counter(
            'commerce_expired_reservations_total',
            'Pending online orders canceled by the reservation sweeper',
        )

    # ========== Helper Methods ==========

    def record_checkout(
        self, *, unit_kind: str, payment_method: str, result: str, duration: float
    ):
        self.checkout_requests.labels(
            unit_kind=unit_kind, payment_method=payment_method, result=result
        ).inc()

        self.checkout_duration.labels(unit_kind=unit_kind, payment_method=payment_method).observe(
            duration
        )

    def record_webhook(self, *, event_type: str, result: str):
        self.webhook_events.labels(event_type=event_type, result=result).inc()

    def record_redemption(self, *, mode: str, result: str):
        self.redemptions.labels(mode=mode, result=result).inc()

    def record_mirror_write(self, *, subject: str, result: str):
        self.mirror_writes.labels(subject=subject, result=result).inc()


# Global metrics instance
metrics = CommerceMetrics()
