"""Internal constants shared across the library."""

BASE_URL = "https://api.meraki.com/api/v1"
USER_AGENT = "pymerakimt"
API_KEY_HEADER = "X-Cisco-Meraki-API-Key"
DEFAULT_REQUEST_TIMEOUT = 10.0

MANUFACTURER = "Cisco Meraki"
SENSOR_PRODUCT_TYPE = "sensor"
DEVICE_TYPE_SENSOR = "sensor"

DEFAULT_MQTT_BROKER = "mqtt://localhost:1883"
MQTT_PORT = 1883
MQTT_TLS_PORT = 8883

# meraki/v1/mt/{networkId}/ble/{MAC}/{metric}
MQTT_TOPIC_TEMPLATE = "meraki/v1/mt/{network_id}/ble/{mac}/+"
TOPIC_MAC_SEGMENT = 5
TOPIC_METRIC_SEGMENT = 6
