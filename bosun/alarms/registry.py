"""AlarmRegistry: alert lifecycle against the remote alarm API.

Alerts are keyed by ``path`` and kept in creation order.  Each mutation
replaces the stored :class:`Alert` with an updated copy and broadcasts a
full snapshot to every listener, so a snapshot handed out earlier never
changes underneath its holder.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog

from bosun.alarms.client import AlarmApiClient
from bosun.alarms.exceptions import AlarmApiError, AlarmEndpointUnsupportedError
from bosun.audio.dispatcher import AudioAlertDispatcher
from bosun.core.config import NotificationsConfig
from bosun.core.types import Alert, AlertLevel, AlertOrigin, AlertSnapshot, now_ms

logger = structlog.stdlib.get_logger()

AlertListener = Callable[[AlertSnapshot], None]


def _first_present(body: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _timestamp_ms(value: Any, default: int) -> int:
    """Accept epoch ms (number or numeric string) or an ISO-8601 string."""
    if value in (None, "") or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            pass
        try:
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)
        except ValueError:
            return default
    return default


class AlarmRegistry:
    """Central alert store and lifecycle manager.

    Usage::

        registry = AlarmRegistry(api, audio)
        registry.on_change(render_alert_list)
        alert = await registry.raise_alarm("mob", "Crew overboard")
        registry.acknowledge(alert.path)
        await registry.clear(alert.path)
    """

    def __init__(
        self,
        client: AlarmApiClient,
        audio: AudioAlertDispatcher | None = None,
        notifications: NotificationsConfig | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._client = client
        self._audio = audio
        self._sound_enabled = (notifications or NotificationsConfig()).sound
        self._clock = clock
        self._alerts: dict[str, Alert] = {}
        self._listeners: list[AlertListener] = []
        # Paths of alerts that started a sound and have not released it.
        self._sounding: set[str] = set()

    # ── Properties ──────────────────────────────────────────────

    @property
    def sound_enabled(self) -> bool:
        return self._sound_enabled

    def set_sound_enabled(self, enabled: bool) -> None:
        self._sound_enabled = enabled

    @property
    def sounding(self) -> frozenset[str]:
        """Paths of alerts currently holding the alarm sound."""
        return frozenset(self._sounding)

    # ── Change feed ─────────────────────────────────────────────

    def on_change(self, listener: AlertListener) -> None:
        """Register a listener for full alert snapshots."""
        self._listeners.append(listener)

    def remove_listener(self, listener: AlertListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self) -> None:
        snapshot = self.alerts()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("alert_listener_error", listener=repr(listener))

    # ── Accessors ───────────────────────────────────────────────

    def alerts(self) -> AlertSnapshot:
        return list(self._alerts.items())

    def mob_alerts(self) -> AlertSnapshot:
        return [(p, a) for p, a in self._alerts.items() if a.type.lower() == "mob"]

    def get_alert(self, path: str) -> Alert | None:
        return self._alerts.get(path)

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, path: object) -> bool:
        return path in self._alerts

    # ── Raise ───────────────────────────────────────────────────

    async def raise_alarm(
        self,
        alarm_type: str,
        message: str = "",
        *,
        level: AlertLevel = AlertLevel.MEDIUM,
        sound: bool = True,
        debounce_key: str | None = None,
    ) -> Alert:
        """Raise an alarm on the server, or locally if the server lacks the type.

        Raises:
            AlarmApiUnavailableError: on any failure other than an
                unsupported endpoint; no alert is created.
        """
        try:
            body = await self._client.raise_alarm(alarm_type, message)
        except AlarmEndpointUnsupportedError:
            logger.warning(
                "alarm_endpoint_unsupported",
                alarm_type=alarm_type,
                detail="creating local fallback alert",
            )
            alert = self._local_alert(alarm_type, message, level, sound)
        except AlarmApiError as exc:
            logger.warning("alarm_raise_failed", alarm_type=alarm_type, error=str(exc))
            raise
        else:
            alert = self._alert_from_response(alarm_type, message, body, level, sound)

        await self._add(alert, debounce_key or alarm_type)
        logger.info(
            "alarm_raised",
            path=alert.path,
            alarm_type=alarm_type,
            origin=alert.origin.value,
        )
        return alert

    def _alert_from_response(
        self,
        alarm_type: str,
        message: str,
        body: dict[str, Any],
        level: AlertLevel,
        sound: bool,
    ) -> Alert:
        now = self._clock()
        alarm_id = _first_present(body, "id", "path", "_id")
        if alarm_id is None:
            # No server identity: generate one that cannot shadow a live alert.
            path = self._unique_path(f"{alarm_type}.{alarm_type}.{now}")
            remote_id = str(now)
        else:
            path = _first_present(body, "path") or f"{alarm_type}.{alarm_id}"
            remote_id = _first_present(body, "id", "_id") or path.rsplit(".", 1)[-1]

        properties = body.get("properties")
        icon = body.get("icon")
        return Alert(
            path=path,
            type=alarm_type,
            priority=_as_int(body.get("priority"), 2),
            message=body.get("message") or message,
            sound=sound,
            visual=True,
            properties=properties if isinstance(properties, dict) else {},
            icon=icon if isinstance(icon, dict) else {"svgIcon": "alarm"},
            can_acknowledge=bool(body.get("canAcknowledge", False)),
            can_cancel=bool(body.get("canCancel", True)),
            created_at=_timestamp_ms(body.get("createdAt"), now),
            origin=AlertOrigin.SERVER,
            remote_id=remote_id,
            level=level,
        )

    def _local_alert(
        self,
        alarm_type: str,
        message: str,
        level: AlertLevel,
        sound: bool,
    ) -> Alert:
        now = self._clock()
        path = self._unique_path(f"{alarm_type}.{now}")
        return Alert(
            path=path,
            type=alarm_type,
            priority=2,
            message=message,
            sound=sound,
            visual=True,
            can_acknowledge=False,
            can_cancel=False,
            created_at=now,
            origin=AlertOrigin.LOCAL,
            level=level,
        )

    def _unique_path(self, base: str) -> str:
        path = base
        suffix = 1
        while path in self._alerts:
            path = f"{base}-{suffix}"
            suffix += 1
        return path

    async def _add(self, alert: Alert, debounce_key: str) -> None:
        self._alerts[alert.path] = alert
        self._emit()

        if self._sound_enabled and alert.sound and self._audio is not None:
            self._sounding.add(alert.path)
            await self._audio.play(alert.level, debounce_key)

    # ── Lifecycle ───────────────────────────────────────────────

    def acknowledge(self, path: str) -> Alert | None:
        """Mark an alert acknowledged. Local only."""
        alert = self._alerts.get(path)
        if alert is None:
            return None
        updated = alert.model_copy(update={"acknowledged": True})
        self._alerts[path] = updated
        self._emit()
        return updated

    async def silence(self, path: str) -> Alert | None:
        """Silence an alert, on the server for server-backed standard types.

        Raises:
            AlarmApiError: if the remote silence fails; the alert is
                left unsilenced.
        """
        alert = self._alerts.get(path)
        if alert is None:
            return None

        if alert.is_standard and not alert.is_local:
            try:
                await self._client.silence_alarm(alert.type, alert.remote_id)
            except AlarmApiError as exc:
                logger.warning("alarm_silence_failed", path=path, error=str(exc))
                raise

        current = self._alerts.get(path)
        if current is None:
            return None
        updated = current.model_copy(update={"silenced": True})
        self._alerts[path] = updated
        self._emit()
        await self._release_sound(path)
        return updated

    async def clear(self, path: str) -> bool:
        """Remove an alert, cancelling it on the server when possible.

        Returns True if an alert was removed.

        Raises:
            AlarmApiError: if the remote cancel fails; the alert stays.
        """
        alert = self._alerts.get(path)
        if alert is None:
            return False

        if alert.can_cancel and alert.is_standard:
            try:
                await self._client.cancel_alarm(alert.type, alert.remote_id)
            except AlarmApiError as exc:
                logger.warning("alarm_cancel_failed", path=path, error=str(exc))
                raise

        if path not in self._alerts:
            return False
        del self._alerts[path]
        self._emit()
        await self._release_sound(path)
        logger.info("alarm_cleared", path=path, alarm_type=alert.type)
        return True

    async def reset(self) -> None:
        """Drop every alert and stop any sound."""
        self._alerts.clear()
        self._sounding.clear()
        self._emit()
        if self._audio is not None:
            await self._audio.stop()

    async def _release_sound(self, path: str) -> None:
        if path not in self._sounding:
            return
        self._sounding.discard(path)
        if not self._sounding and self._audio is not None:
            await self._audio.stop()
