"""
MQTTQueryPlane - MQTT request/response transport for GeoQueryService

Bounded Context: MQTT connection management + query dispatch
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Query reception (subscribe to request topic)
  - Reply publishing (reply_to topic from the request, or response topic)
  - Status publishing (retained)
  - Query delegation to QueryRegistry

Request payload:
    {"query": "find_country", "request_id": "abc", "reply_to": "...",
     "latitude": 48.85, "longitude": 2.35}

Reply payload:
    {"request_id": "abc", "query": "find_country", "ok": true,
     "result": {...}, "timestamp": "..."}
    {"request_id": "abc", "query": "find_country", "ok": false,
     "error": {"type": "InvalidRequestError", "message": "..."}, ...}

QoS Policy:
  - Requests and replies: configured QoS (default 1)
  - Status: QoS 1 + retained (last status persisted)

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Callbacks (_on_connect, _on_message) run in MQTT thread
  - Query handlers run in MQTT thread; catalog scans are CPU-only
"""

import json
import logging
from datetime import datetime
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import QueryNotAvailableError, QueryRegistry

logger = logging.getLogger(__name__)


class MQTTQueryPlane:
    """
    MQTT endpoint answering geo queries.

    Example:
        plane = MQTTQueryPlane(
            broker_host="localhost",
            broker_port=1883,
            request_topic="geoapi/geo_01/requests",
            response_topic="geoapi/geo_01/responses",
            status_topic="geoapi/geo_01/status",
            client_id="geoapi_geo_01",
        )
        register_queries(plane.query_registry, service)

        if plane.connect(timeout=5.0):
            print("Connected to MQTT broker")

        # Later: disconnect
        plane.disconnect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        request_topic: str,
        response_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port (typically 1883)
            request_topic: Topic for receiving queries (subscribe)
            response_topic: Default topic for replies (publish)
            status_topic: Topic for publishing status (publish, retained)
            client_id: MQTT client identifier
            username: Optional MQTT authentication username
            password: Optional MQTT authentication password
            qos: QoS for requests and replies
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.request_topic = request_topic
        self.response_topic = response_topic
        self.status_topic = status_topic
        self.client_id = client_id
        self.qos = qos

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        # Connection synchronization
        self._connected = Event()
        self._running = False

        self.query_registry = QueryRegistry()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            logger.info(f"🔌 Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                logger.info("✅ MQTT Query Plane connected")
                return True
            else:
                logger.error(f"❌ Connection timeout after {timeout}s")
                return False

        except OSError as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

    def disconnect(self) -> None:
        """
        Disconnect from MQTT broker. Safe to call multiple times.
        """
        if self._running:
            logger.info("🔌 Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()
            logger.info("✅ MQTT Query Plane disconnected")

    def publish_status(self, status: str) -> None:
        """
        Publish retained status update ("connected", "disconnected", ...).
        """
        message = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
            "queries": sorted(self.query_registry.available_queries),
        }
        self.client.publish(self.status_topic, json.dumps(message), qos=1, retain=True)
        logger.debug(f"📤 Status published: {status}")

    # ===== Request handling =====

    @staticmethod
    def decode_request(payload: bytes) -> Optional[Dict[str, Any]]:
        """
        Decode a raw MQTT payload.

        Returns:
            Request dict, or None if the payload is not a JSON object
            (nothing to reply to)
        """
        try:
            request = json.loads(payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error decoding JSON: {payload!r} ({e})")
            return None

        if not isinstance(request, dict):
            logger.warning(f"⚠️ Request must be a JSON object, got {type(request).__name__}")
            return None
        return request

    def handle_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute one decoded request and build the reply.

        Failures become ok=false replies; nothing propagates to the MQTT thread.
        """
        query = str(request.get('query', '')).lower()
        reply = {
            "request_id": request.get('request_id'),
            "query": query,
            "timestamp": datetime.now().isoformat(),
        }

        if not query:
            logger.warning("⚠️ Empty query received")
            return {**reply, "ok": False, "error": _error("InvalidRequestError", "Missing 'query'")}

        logger.info(f"🎯 Executing query: {query}")
        try:
            result = self.query_registry.execute(query, request)
        except QueryNotAvailableError as e:
            logger.warning(f"⚠️ {e}")
            return {**reply, "ok": False, "error": _error(type(e).__name__, str(e))}
        except ValueError as e:
            # InvalidRequestError, non-finite points
            logger.warning(f"⚠️ Invalid request for '{query}': {e}")
            return {**reply, "ok": False, "error": _error(type(e).__name__, str(e))}
        except Exception as e:
            logger.error(f"❌ Error executing query '{query}': {e}", exc_info=True)
            return {**reply, "ok": False, "error": _error(type(e).__name__, str(e))}

        return {**reply, "ok": True, "result": result}

    def publish_reply(self, reply: Dict[str, Any], reply_to: Optional[str] = None) -> None:
        """Publish a reply to reply_to, or to the default response topic."""
        topic = reply_to or self.response_topic
        self.client.publish(topic, json.dumps(reply), qos=self.qos)
        logger.debug(f"📤 Reply published to {topic} (ok={reply.get('ok')})")

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info(f"✅ Connected to broker (rc={reason_code})")

            client.subscribe(self.request_topic, qos=self.qos)
            logger.info(f"📥 Subscribed to: {self.request_topic} (QoS {self.qos})")

            self.publish_status("connected")
            self._connected.set()
        else:
            logger.error(f"❌ Connection failed (rc={reason_code})")
            self._connected.clear()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            logger.warning(f"⚠️ Unexpected disconnection (rc={reason_code})")
        else:
            logger.info("✅ Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """
        MQTT callback: query received.

        Thread: Runs in MQTT client thread
        """
        request = self.decode_request(msg.payload)
        if request is None:
            return

        reply = self.handle_request(request)
        reply_to = request.get('reply_to')
        self.publish_reply(reply, reply_to if isinstance(reply_to, str) else None)


def _error(error_type: str, message: str) -> Dict[str, str]:
    return {"type": error_type, "message": message}
