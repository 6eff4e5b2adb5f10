from __future__ import annotations
from prometheus_client import Counter, Gauge

inbound_messages = Counter("relay_inbound_messages_total", "Provider inbound events", ["result"])
pull_requests = Counter("relay_pull_requests_total", "Pull requests from the ticketing platform")
pulled_resources = Counter("relay_pulled_resources_total", "External resources handed to the ticketing platform")
channelbacks = Counter("relay_channelbacks_total", "Channelback dispatch outcomes", ["outcome"])
queue_depth = Gauge("relay_queue_depth", "Pending messages per recipient", ["recipient"])
