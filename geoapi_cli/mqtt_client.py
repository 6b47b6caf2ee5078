"""
MQTT client wrapper for sending queries to the GeoAPI server.

Publishes one request with a private reply_to topic and waits for the reply.
"""

import json
import logging
import uuid
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)


class MQTTQueryClient:
    """
    Request/response MQTT client for GeoAPI queries.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None
    ):
        self.broker = broker
        self.port = port

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        if username and password:
            self.client.username_pw_set(username, password)

    @staticmethod
    def decode_reply(payload: bytes) -> Optional[Dict[str, Any]]:
        """
        Decode a raw reply payload.

        Returns:
            Reply dict, or None if the payload is not a JSON object
        """
        try:
            reply = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring undecodable reply: {payload!r} ({e})")
            return None

        if not isinstance(reply, dict):
            logger.warning(f"Ignoring reply that is not a JSON object: {type(reply).__name__}")
            return None
        return reply

    def request(
        self,
        topic: str,
        query: Dict[str, Any],
        timeout: float = 5.0,
        qos: int = 1
    ) -> Dict[str, Any]:
        """
        Send a query and wait for its reply.

        Args:
            topic: Server request topic (e.g., "geoapi/geo_01/requests")
            query: Request dict with at least a "query" key
            timeout: Seconds to wait for the reply
            qos: Quality of Service for request and reply

        Returns:
            Decoded reply dict

        Raises:
            ConnectionError: If unable to connect to the broker
            TimeoutError: If no reply arrives within timeout
        """
        request_id = uuid.uuid4().hex
        reply_topic = f"{topic.rstrip('/')}/replies/{request_id}"
        payload = json.dumps({**query, "request_id": request_id, "reply_to": reply_topic})

        subscribed = Event()
        received = Event()
        reply: Dict[str, Any] = {}

        def on_subscribe(client, userdata, mid, reason_codes, properties):
            subscribed.set()

        def on_message(client, userdata, msg):
            # Runs on the network thread; bad payloads are dropped
            data = self.decode_reply(msg.payload)
            if data is not None and data.get("request_id") == request_id:
                reply.update(data)
                received.set()

        self.client.on_subscribe = on_subscribe
        self.client.on_message = on_message

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                "Is mosquitto running?"
            ) from e

        self.client.loop_start()
        try:
            self.client.subscribe(reply_topic, qos=qos)
            if not subscribed.wait(timeout):
                raise TimeoutError(f"Subscription to {reply_topic} not acknowledged")

            self.client.publish(topic, payload, qos=qos).wait_for_publish(timeout)

            if not received.wait(timeout):
                raise TimeoutError(f"No reply to '{query.get('query')}' within {timeout}s")
            return reply
        finally:
            self.client.loop_stop()
            self.client.disconnect()
