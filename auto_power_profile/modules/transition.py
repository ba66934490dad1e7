from typing import Callable, Dict, Optional
import logging

UserChangeCallback = Callable[[str, Dict[str, bool]], None]


class ProfileTransition:
    """
    Gates profile switch requests and tells self-made changes from user changes.

    A request is allowed whenever one of the condition axes (on battery, low
    battery, performance apps) changed since the last time it was seen, or
    when no profile is committed. Once a requested profile shows up as the
    effective one it is committed and further requests are refused until an
    axis changes. That is what keeps the daemon from undoing a profile the
    user picked by hand while nothing about the power situation changed.

    Known limitation: when the user happens to pick exactly the profile that
    was just requested, the change is taken as the confirmation of the
    request.
    """

    def __init__(self, on_user_change: Optional[UserChangeCallback] = None) -> None:
        self.on_user_change: Optional[UserChangeCallback] = on_user_change
        self.reset()

    def reset(self) -> None:
        """Forget all history, the next request is always allowed."""
        self.effective_profile: Optional[str] = None
        self.requested_profile: Optional[str] = None
        self.committed_profile: Optional[str] = None
        self.on_battery: Optional[bool] = None
        self.low_battery: Optional[bool] = None
        self.perf_apps: Optional[bool] = None

    @property
    def pending(self) -> bool:
        """True while a request waits for its confirmation."""
        return self.requested_profile is not None and self.committed_profile is None

    def report(
        self,
        effective_profile: Optional[str],
        on_battery: Optional[bool] = None,
        low_battery: Optional[bool] = None,
        perf_apps: Optional[bool] = None,
        on_ac: Optional[bool] = None,
    ) -> None:
        """
        Record the profile observed as active and the conditions it was observed under.

        :param effective_profile: Profile reported by the controller, None resets all state
        :param on_battery: Running from battery
        :param low_battery: Battery is low and the power saver override is enabled
        :param perf_apps: A performance app is running
        :param on_ac: Running from AC, defaults to ``not on_battery``
        """
        if not effective_profile:
            self.reset()
            return

        previous = self.effective_profile
        self.effective_profile = effective_profile
        self.on_battery = on_battery
        self.low_battery = low_battery
        self.perf_apps = perf_apps

        if self.pending and effective_profile == self.requested_profile:
            # the switch we asked for went through
            self.committed_profile = effective_profile
            logging.debug(f"profile {effective_profile} committed")
            return

        if previous is None or effective_profile == previous:
            return

        # nobody here asked for this profile: the user changed it
        logging.info(f"profile changed to {effective_profile} by user")
        self.requested_profile = effective_profile
        self.committed_profile = effective_profile

        if low_battery or perf_apps:
            logging.debug("user profile not remembered, low battery or performance app override active")
            return

        if self.on_user_change is not None:
            self.on_user_change(
                effective_profile,
                {
                    "on_battery": bool(on_battery),
                    "on_ac": (not on_battery) if on_ac is None else on_ac,
                    "low_battery": bool(low_battery),
                },
            )

    def request(
        self,
        configured_profile: str,
        on_battery: bool,
        low_battery: bool,
        perf_apps: bool,
    ) -> bool:
        """
        Ask whether the configured profile may be applied.

        :param configured_profile: Profile chosen by the policy
        :param on_battery: Running from battery
        :param low_battery: Battery is low and the power saver override is enabled
        :param perf_apps: A performance app is running
        :return: True if the caller should switch to ``configured_profile``
        """
        allowed = (
            self.on_battery != on_battery
            or self.low_battery != low_battery
            or self.perf_apps != perf_apps
            or self.committed_profile is None
        )
        if not allowed:
            return False

        self.requested_profile = configured_profile
        self.committed_profile = None
        self.on_battery = on_battery
        self.low_battery = low_battery
        self.perf_apps = perf_apps

        if configured_profile == self.effective_profile:
            # already active, no profile change signal will confirm it
            self.committed_profile = configured_profile

        return True
