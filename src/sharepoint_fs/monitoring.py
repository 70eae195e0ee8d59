# -*- coding: utf-8 -*-
"""
Graph API throttling monitor for the SharePoint filesystem adapter.

Graph only reports throttling headers once more than 80% of a limit is consumed:
- x-ms-throttle-limit-percentage: utilization (0.8-1.8 range)
- x-ms-resource-unit: resource units charged for the request
- x-ms-throttle-scope: which limit is being approached
"""

from .utils import is_debug_metadata_enabled


class RateLimitMonitor:
    """Track throttling headers seen on Graph responses."""

    def __init__(self, throttle_threshold=0.8, slow_down_threshold=0.9):
        self.throttle_threshold = throttle_threshold
        self.slow_down_threshold = slow_down_threshold
        self.reset()

    def reset(self):
        self.total_requests = 0
        self.throttled_requests = 0
        self.max_throttle_percentage = 0.0
        self.resource_units_consumed = 0

    def analyze_response_headers(self, response):
        """
        Record the throttling headers of one response.

        Args:
            response: requests.Response object from a Graph API call

        Returns:
            dict: Throttling information extracted from the headers
        """
        self.total_requests += 1

        headers = response.headers
        throttle_percentage = headers.get('x-ms-throttle-limit-percentage')
        resource_unit = headers.get('x-ms-resource-unit')
        throttle_scope = headers.get('x-ms-throttle-scope')

        percentage = float(throttle_percentage) if throttle_percentage else None
        if percentage is not None:
            self.max_throttle_percentage = max(self.max_throttle_percentage, percentage)
            if percentage >= 1.0:
                self.throttled_requests += 1
                print(f"[!] THROTTLING DETECTED: {percentage:.1%} of limit used")
                if throttle_scope:
                    print(f"[!] Throttle scope: {throttle_scope}")
            elif percentage >= self.throttle_threshold:
                print(f"[ ] Rate limit warning: {percentage:.1%} of limit used")

        units = int(resource_unit) if resource_unit else None
        if units is not None:
            self.resource_units_consumed += units
            if is_debug_metadata_enabled():
                print(f"[=] Resource units consumed: {units}")

        return {
            'throttle_percentage': percentage,
            'resource_unit': units,
            'throttle_scope': throttle_scope,
            'is_throttled': response.status_code == 429
        }

    def should_slow_down(self):
        """
        Determine if requests should be slowed down proactively.

        Returns:
            bool: True once utilization has reached the slow-down threshold
        """
        return self.max_throttle_percentage >= self.slow_down_threshold


# Process-wide monitor shared by every Graph request
rate_monitor = RateLimitMonitor()
