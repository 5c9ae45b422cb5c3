"""
Event Manager for the staking ledger.

Delivers ledger notifications (stake, claim, unstake, recover) to
subscribers. Delivery is fire-and-forget: a failing handler is logged and
never affects the ledger operation that published the event.
"""

import threading
import time
from collections import defaultdict
from typing import Any, Callable, Dict

import bittensor as bt


class EventManager:
    """
    Manages subscriptions and delivery of ledger events.
    """

    def __init__(self):
        """Initialize the event manager."""
        # Dictionary mapping event types to lists of handler functions
        self.subscribers = defaultdict(list)

        # Event statistics
        self.stats = {
            "events_published": 0,
            "events_processed": 0,
            "handler_errors": 0,
            "events_by_type": defaultdict(int),
            "handler_execution_times": defaultdict(list),
        }
        # Publishers may run on several threads at once
        self._stats_lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Callable[[str, Any], None]):
        """
        Subscribe a handler function to an event type.

        Args:
            event_type: The type of event to subscribe to
            handler: Called as handler(event_type, data)
        """
        if handler not in self.subscribers[event_type]:
            self.subscribers[event_type].append(handler)
            bt.logging.debug(f"Handler subscribed to event type: {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable[[str, Any], None]):
        """
        Unsubscribe a handler function from an event type.

        Args:
            event_type: The type of event to unsubscribe from
            handler: The function to unsubscribe
        """
        if handler in self.subscribers[event_type]:
            self.subscribers[event_type].remove(handler)
            bt.logging.debug(f"Handler unsubscribed from event type: {event_type}")

    def publish(self, event_type: str, data: Any = None):
        """
        Publish an event to all subscribers.

        Args:
            event_type: The type of event being published
            data: The data associated with the event
        """
        with self._stats_lock:
            self.stats["events_published"] += 1
            self.stats["events_by_type"][event_type] += 1

        handlers = list(self.subscribers.get(event_type, []))
        if not handlers:
            bt.logging.debug(f"Event published with no subscribers: {event_type}")
            return

        for handler in handlers:
            self._execute_handler(handler, event_type, data)

    def _execute_handler(self, handler: Callable, event_type: str, data: Any):
        handler_start_time = time.time()
        failed = False
        try:
            handler(event_type, data)
        except Exception as e:
            failed = True
            bt.logging.error(f"Error in event handler for {event_type}: {str(e)}")

        execution_time = time.time() - handler_start_time
        with self._stats_lock:
            if failed:
                self.stats["handler_errors"] += 1
            else:
                self.stats["events_processed"] += 1
            times = self.stats["handler_execution_times"][event_type]
            times.append(execution_time)

            # Keep only the last 100 execution times
            if len(times) > 100:
                del times[:-100]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the event manager.

        Returns:
            A dictionary of statistics
        """
        with self._stats_lock:
            average_times = {}
            for event_type, times in self.stats["handler_execution_times"].items():
                average_times[event_type] = sum(times) / len(times) if times else 0

            return {
                "events_published": self.stats["events_published"],
                "events_processed": self.stats["events_processed"],
                "handler_errors": self.stats["handler_errors"],
                "events_by_type": dict(self.stats["events_by_type"]),
                "average_execution_times": average_times,
                "subscriber_count": {event: len(handlers) for event, handlers in self.subscribers.items()},
            }
