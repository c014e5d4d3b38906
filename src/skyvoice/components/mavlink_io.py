"""MAVLink link: connect to the vehicle and read telemetry messages without blocking."""
import logging
from pymavlink import mavutil
from skyvoice.system.exceptions import MavlinkError, MavlinkConnectionError


class MavlinkController:
	"""Owns a single MAVLink connection (serial or network) to one vehicle."""
	def __init__(self, connection_string: str, baudrate: int | None = None, source_system_id: int = 255):
		self.logger = logging.getLogger(__name__)
		self.connection_string = connection_string
		self.baudrate = baudrate
		self.source_system_id = source_system_id
		self.master = None

	def connect(self, heartbeat_timeout: float = 10):
		"""Establish connection to the vehicle and wait for its first heartbeat."""
		try:
			if "com" in self.connection_string.lower() or "/dev/tty" in self.connection_string.lower():
				self.master = mavutil.mavlink_connection(
					self.connection_string, baud=self.baudrate, source_system=self.source_system_id
				)
			else:
				self.master = mavutil.mavlink_connection(
					self.connection_string,
					source_system=self.source_system_id,
					dialect="ardupilotmega",
					autoreconnect=True,
				)
			self.logger.info(f"MAVLink: Waiting for heartbeat (timeout {heartbeat_timeout}s) on {self.connection_string}...")
			heartbeat = self.master.wait_heartbeat(timeout=heartbeat_timeout)
		except Exception as e:
			self.logger.error(f"MAVLink: EXCEPTION connect/wait_heartbeat on {self.connection_string}: {e}")
			self._discard()
			raise MavlinkError(f"Exception during MAVLink connection: {e}") from e

		if heartbeat is None or self.master.target_system == 0:
			self.logger.error(f"MAVLink: No valid heartbeat on {self.connection_string}.")
			self._discard()
			raise MavlinkConnectionError(f"No heartbeat from a vehicle on {self.connection_string}")

		self.logger.info(
			f"MAVLink: Heartbeat from system {self.master.target_system} component {self.master.target_component}."
		)

	def is_connected(self) -> bool:
		return self.master is not None

	def recv(self, max_messages: int = 50) -> list:
		"""Drains up to max_messages pending messages; never blocks."""
		if not self.is_connected():
			return []
		messages = []
		while len(messages) < max_messages:
			try:
				msg = self.master.recv_match(blocking=False)
			except Exception as e:
				self.logger.error(f"MAVLink: Receive error on {self.connection_string}: {e}")
				self._discard()
				raise MavlinkError(f"Receive failed: {e}") from e
			if not msg:
				break
			if msg.get_type() == 'BAD_DATA':
				continue
			messages.append(msg)
		return messages

	def close_connection(self):
		if self.master:
			self._discard()
			self.logger.info(f"MAVLink: Connection closed for {self.connection_string}.")

	def _discard(self):
		master, self.master = self.master, None
		if master is not None:
			try:
				master.close()
			except Exception as e:
				self.logger.debug(f"MAVLink: close failed: {e}")
