from typing import NamedTuple
from hathor import (
    Address,
    Blueprint,
    Context,
    NCDepositAction,
    NCWithdrawalAction,
    NCFail,
    TokenUid,
    export,
    public,
    view,
)

#
# === CROWDFUNDING ESCROW BLUEPRINT ===
#
# Milestone-gated crowdfunding escrow. Donors fund a project in its exchange token;
# the project owner can only withdraw budget tranches ("thresholds") that the
# project's donors approved by strict majority vote.
#
# Features:
# - Supported-token registry (projects may only use registered tokens)
# - Per-project donation fee (bps, floor rounding), aggregated per token
# - One vote session per threshold, opened by funding, closed by an updater
# - Cascade: passing a threshold opens the next one if funding already covers it
# - Owner withdrawals, fee withdrawals, moving funds between projects
# - Roles (admin / pauser / updater / withdrawer) and a pause gate
#
# === AMOUNT CONSTANTS ===
#

BPS_DENOMINATOR = 10_000
DEFAULT_MIN_DONATION = 10_000  # base units; smallest gross donation accepted by default

ZERO_ADDRESS = Address(b"\x00" * 25)
ZERO_TOKEN_UID = TokenUid(b"\x00" * 32)


#
# === ROLES ===
#

DEFAULT_ADMIN_ROLE = "DEFAULT_ADMIN_ROLE"  # grants and revokes roles
PAUSER_ROLE = "PAUSER_ROLE"
UPDATER_ROLE = "UPDATER_ROLE"              # projects, tokens, deliberation
WITHDRAWER_ROLE = "WITHDRAWER_ROLE"        # protocol fees

ALL_ROLES = (DEFAULT_ADMIN_ROLE, PAUSER_ROLE, UPDATER_ROLE, WITHDRAWER_ROLE)


#
# === VIEW RETURN TYPES (JSON-friendly) ===
#

class ProjectView(NamedTuple):
    owner: str              # base58 string
    exchange_token: str     # token uid hex
    name: str
    asso_name: str
    description: str
    required_amount: int
    current_amount: int
    available_to_withdraw: int
    current_threshold: int
    nb_of_thresholds: int
    required_vote_percentage: int
    donation_fee_bps: int
    vote_cooldown: int
    is_active: bool


class ThresholdView(NamedTuple):
    budget: int
    is_voting_in_session: bool
    positive_votes: int
    negative_votes: int


class DonationQuoteView(NamedTuple):
    fee: int
    net_amount: int


class ConfigView(NamedTuple):
    min_donation: int
    paused: bool
    project_count: int


#
# === CUSTOM FAIL TYPES ===
#

class CrowdfundingError(NCFail):
    """Base class for crowdfunding escrow failures."""


class InputValidationError(CrowdfundingError):
    """Caller-supplied data is malformed."""


class StateError(CrowdfundingError):
    """The contract state does not allow the operation."""


class AuthorizationError(CrowdfundingError):
    """Caller is not allowed to perform the operation."""


class GateError(CrowdfundingError):
    """The pause gate is not in the required position."""


class ZeroAddress(InputValidationError):
    pass


class ZeroAmount(InputValidationError):
    pass


class ZeroRequiredAmount(InputValidationError):
    pass


class ZeroThresholds(InputValidationError):
    pass


class ZeroVoteCooldown(InputValidationError):
    pass


class ZeroRequiredVotePercentage(InputValidationError):
    pass


class CantGoAbove10000(InputValidationError):
    """A basis-point value exceeds 100%."""


class NegativeValue(InputValidationError):
    pass


class AmountTooSmall(InputValidationError):
    """Donation is below the minimum or would credit nothing after fees."""


class InvalidProjectId(InputValidationError):
    pass


class InvalidThresholdId(InputValidationError):
    pass


class CantWithdrawToSameProject(InputValidationError):
    pass


class DifferentExchangeToken(InputValidationError):
    pass


class InvalidActions(InputValidationError):
    """Invalid deposit/withdrawal actions."""


class InvalidRole(InputValidationError):
    pass


class TokenNotSupported(StateError):
    pass


class ProjectNotActive(StateError):
    pass


class NotInVotingSession(StateError):
    pass


class CanOnlyVoteOnce(StateError):
    pass


class CantDeliberateWithoutVotes(StateError):
    pass


class NoFundsToWithdraw(StateError):
    pass


class NoFeesToWithdraw(StateError):
    pass


class AllowanceNotApproved(StateError):
    """The call does not carry the deposit the donation requires."""


class MissingRole(AuthorizationError):
    pass


class NotADonator(AuthorizationError):
    pass


class NotProjectOwner(AuthorizationError):
    pass


class ContractPaused(GateError):
    pass


class ContractNotPaused(GateError):
    pass


@export
class CrowdfundingEscrow(Blueprint):
    """
    Threshold-gated crowdfunding escrow.

    Identity model:
      - deployer: caller identity at initialize(), receives every role
      - project owner: beneficiary set at create_project(), the only identity
        allowed to withdraw the project's released funds
      - donor: any caller that donated to a project; only donors vote

    Funding model:
      - each donation pays donation_fee_bps of its gross amount into the fee pool
        of the exchange token; the net amount is credited to current_amount
      - threshold i opens its vote session once current_amount reaches
        budget[0] + ... + budget[i]
      - a passed threshold releases its budget into available_to_withdraw
      - once every threshold passed, net donations are released immediately

    Storage model:
      - projects are ids 0..project_count-1 (parallel dicts keyed by id)
      - thresholds live in one slot arena: slot = threshold_offset[project] + index
      - composite keys (donor, ballot, role member) are "<a>/<b>" strings
    """

 # === Contract-level config ===
    min_donation: int
    paused: bool

 # Role membership: "<role>/<account hex>" -> member
    role_members: dict[str, bool]

 # === Token registry ===
    supported_tokens: dict[TokenUid, bool]

 # === Per-project state ===
    project_count: int

    project_owners: dict[int, Address]
    project_tokens: dict[int, TokenUid]
    project_names: dict[int, str]
    project_asso_names: dict[int, str]
    project_descriptions: dict[int, str]

    project_required_amounts: dict[int, int]
    project_current_amounts: dict[int, int]
    project_available_to_withdraw: dict[int, int]

    project_current_thresholds: dict[int, int]
    project_threshold_offsets: dict[int, int]
    project_nb_thresholds: dict[int, int]

    project_required_vote_percentages: dict[int, int]
    project_donation_fees: dict[int, int]
    project_vote_cooldowns: dict[int, int]
    project_active: dict[int, bool]

 # === Threshold arena (keyed by slot) ===
    threshold_count: int
    threshold_budgets: dict[int, int]
    threshold_in_session: dict[int, bool]
    threshold_positive_votes: dict[int, int]
    threshold_negative_votes: dict[int, int]

 # Ballots: "<slot>/<voter hex>" -> approve; never deleted
    ballots: dict[str, bool]

 # Gross donations: "<project id>/<donor hex>" -> amount
    donations: dict[str, int]

 # === Aggregated donation fees (per token uid) ===
    fee_balances: dict[TokenUid, int]

 #
 # === INITIALIZE ===
 #

    @public
    def initialize(self, ctx: Context, min_donation: int) -> None:
        """
        Initializes contract storage and grants every role to the deployer.

        min_donation is the smallest gross donation accepted (see DEFAULT_MIN_DONATION).
        """
        deployer = self._get_caller_id(ctx)

        if min_donation < 0:
            raise NegativeValue("min_donation must be >= 0")

        self.min_donation = min_donation
        self.paused = False

        self.role_members = {}
        self.supported_tokens = {}

        self.project_count = 0
        self.project_owners = {}
        self.project_tokens = {}
        self.project_names = {}
        self.project_asso_names = {}
        self.project_descriptions = {}
        self.project_required_amounts = {}
        self.project_current_amounts = {}
        self.project_available_to_withdraw = {}
        self.project_current_thresholds = {}
        self.project_threshold_offsets = {}
        self.project_nb_thresholds = {}
        self.project_required_vote_percentages = {}
        self.project_donation_fees = {}
        self.project_vote_cooldowns = {}
        self.project_active = {}

        self.threshold_count = 0
        self.threshold_budgets = {}
        self.threshold_in_session = {}
        self.threshold_positive_votes = {}
        self.threshold_negative_votes = {}

        self.ballots = {}
        self.donations = {}
        self.fee_balances = {}

        for role in ALL_ROLES:
            self.role_members[self._role_key(role, deployer)] = True

 #
 # === INTERNAL HELPERS ===
 #

    def _get_caller_id(self, ctx: Context) -> Address:
        """Returns the caller identity (CallerID)."""
        caller = ctx.get_caller_address()
        if caller is None:
            raise AuthorizationError("Caller identity is not available")
        return caller

    def _emit(self, event: str, *fields: str) -> None:
        """Emit an audit event as '<EventName> key=value ...' (utf-8)."""
        self.syscall.emit_event(" ".join((event, *fields)).encode("utf-8"))

    def _role_key(self, role: str, account: Address) -> str:
        return f"{role}/{account.hex()}"

    def _donation_key(self, project_id: int, donor: Address) -> str:
        return f"{project_id}/{donor.hex()}"

    def _ballot_key(self, slot: int, voter: Address) -> str:
        return f"{slot}/{voter.hex()}"

    def _require_role(self, ctx: Context, role: str) -> Address:
        """Authorization gate: returns the caller if it holds `role`."""
        caller = self._get_caller_id(ctx)
        if not self.role_members.get(self._role_key(role, caller), False):
            raise MissingRole(f"account {caller.hex()} is missing role {role}")
        return caller

    def _require_not_paused(self) -> None:
        if self.paused:
            raise ContractPaused("Contract is paused")

    def _assert_project_exists(self, project_id: int) -> None:
        if project_id < 0 or project_id >= self.project_count:
            raise InvalidProjectId(f"Project {project_id} does not exist")

    def _assert_threshold_exists(self, project_id: int, threshold_id: int) -> None:
        if threshold_id < 0 or threshold_id >= self.project_nb_thresholds[project_id]:
            raise InvalidThresholdId(f"Threshold {threshold_id} does not exist")

    def _assert_bps(self, value: int) -> None:
        if value > BPS_DENOMINATOR:
            raise CantGoAbove10000("Basis points cannot exceed 10000")
        if value < 0:
            raise NegativeValue("Basis points must be >= 0")

    def _is_null(self, value: bytes) -> bool:
        return value == ZERO_ADDRESS or value == ZERO_TOKEN_UID

    def _threshold_slot(self, project_id: int, threshold_id: int) -> int:
        return self.project_threshold_offsets[project_id] + threshold_id

    def _cumulative_budget(self, project_id: int, threshold_id: int) -> int:
        """Sum of budgets of thresholds 0..threshold_id (inclusive)."""
        offset = self.project_threshold_offsets[project_id]
        total = 0
        i = 0
        while i <= threshold_id:
            total += self.threshold_budgets[offset + i]
            i += 1
        return total

    def _split_donation(self, project_id: int, amount: int) -> tuple[int, int]:
        """Return (fee, net) for a gross donation, fee rounded down."""
        fee = amount * self.project_donation_fees[project_id] // BPS_DENOMINATOR
        return fee, amount - fee

    def _maybe_open_session(self, project_id: int) -> None:
        """Open the current threshold's vote session if funding covers it and it is closed."""
        index = self.project_current_thresholds[project_id]
        if index >= self.project_nb_thresholds[project_id]:
            return

        slot = self._threshold_slot(project_id, index)
        if self.threshold_in_session[slot]:
            return
        if self.project_current_amounts[project_id] < self._cumulative_budget(project_id, index):
            return

        self.threshold_in_session[slot] = True
        self.threshold_positive_votes[slot] = 0
        self.threshold_negative_votes[slot] = 0

        self.log.info("vote session started", project_id=project_id, threshold=index)
        self._emit("VoteSessionStarted", f"project_id={project_id}", f"threshold={index}")

    def _take_donation_deposit(self, ctx: Context, token_uid: TokenUid, amount: int) -> None:
        """Validate that this call deposits exactly `amount` of token_uid."""
        if set(ctx.actions.keys()) != {token_uid}:
            raise AllowanceNotApproved("Donation must deposit exactly the project's exchange token")

        action = ctx.get_single_action(token_uid)
        if not isinstance(action, NCDepositAction):
            raise AllowanceNotApproved("Donation must be a deposit")
        if action.amount != amount:
            raise AllowanceNotApproved("Deposited amount does not match the donation amount")

    def _process_withdraw(self, ctx: Context, token_uid: TokenUid, expected_amount: int) -> None:
        """Validate that this call withdraws exactly expected_amount of token_uid."""
        if set(ctx.actions.keys()) != {token_uid}:
            raise InvalidActions("Withdraw must operate on exactly one expected token")

        action = ctx.get_single_action(token_uid)
        if not isinstance(action, NCWithdrawalAction):
            raise InvalidActions("Expected a withdrawal action")
        if action.amount != expected_amount:
            raise InvalidActions("Incorrect withdrawal amount")

 #
 # === ACCESS CONTROL ===
 #

    @public
    def grant_role(self, ctx: Context, role: str, account: Address) -> None:
        """Admin-only: add `account` to `role`."""
        self._require_role(ctx, DEFAULT_ADMIN_ROLE)
        if role not in ALL_ROLES:
            raise InvalidRole(f"Unknown role {role}")
        if self._is_null(account):
            raise ZeroAddress("Account cannot be the zero address")

        self.role_members[self._role_key(role, account)] = True
        self._emit("RoleGranted", f"role={role}", f"account={account.hex()}")

    @public
    def revoke_role(self, ctx: Context, role: str, account: Address) -> None:
        """Admin-only: remove `account` from `role`."""
        self._require_role(ctx, DEFAULT_ADMIN_ROLE)
        if role not in ALL_ROLES:
            raise InvalidRole(f"Unknown role {role}")
        if self._is_null(account):
            raise ZeroAddress("Account cannot be the zero address")

        self.role_members[self._role_key(role, account)] = False
        self._emit("RoleRevoked", f"role={role}", f"account={account.hex()}")

    @public
    def pause(self, ctx: Context) -> None:
        self._require_role(ctx, PAUSER_ROLE)
        if self.paused:
            raise ContractPaused("Contract is already paused")
        self.paused = True
        self.log.info("contract paused")
        self._emit("Paused")

    @public
    def unpause(self, ctx: Context) -> None:
        self._require_role(ctx, PAUSER_ROLE)
        if not self.paused:
            raise ContractNotPaused("Contract is not paused")
        self.paused = False
        self.log.info("contract unpaused")
        self._emit("Unpaused")

 #
 # === UPDATER-ONLY ADMIN ===
 #

    @public
    def add_token(self, ctx: Context, token_uid: TokenUid) -> None:
        """Updater-only: accept `token_uid` as a project exchange token."""
        self._require_role(ctx, UPDATER_ROLE)
        if self._is_null(token_uid):
            raise ZeroAddress("Token uid cannot be the null token")

        self.supported_tokens[token_uid] = True
        self._emit("TokenAdded", f"token={token_uid.hex()}")

    @public
    def set_min_donation(self, ctx: Context, min_donation: int) -> None:
        self._require_role(ctx, UPDATER_ROLE)
        if min_donation < 0:
            raise NegativeValue("min_donation must be >= 0")
        self.min_donation = min_donation

    @public
    def set_donation_fee(self, ctx: Context, project_id: int, fee_bps: int) -> None:
        """Updater-only: change the fee applied to future donations of a project."""
        self._require_role(ctx, UPDATER_ROLE)
        self._assert_project_exists(project_id)
        self._assert_bps(fee_bps)

        self.project_donation_fees[project_id] = fee_bps
        self._emit("DonationFeeUpdated", f"project_id={project_id}", f"fee_bps={fee_bps}")

    @public
    def update_project_status(self, ctx: Context, project_id: int, active: bool) -> None:
        """Updater-only: open or close a project to donations."""
        self._require_role(ctx, UPDATER_ROLE)
        self._assert_project_exists(project_id)

        self.project_active[project_id] = active
        self._emit("ProjectStatusUpdated", f"project_id={project_id}", f"active={active}")

    @public
    def update_project_vote_cooldown(self, ctx: Context, project_id: int, cooldown: int) -> None:
        """Updater-only: store a new vote cooldown (informational; not enforced)."""
        self._require_role(ctx, UPDATER_ROLE)
        self._assert_project_exists(project_id)
        if cooldown <= 0:
            raise ZeroVoteCooldown("Vote cooldown must be > 0")

        self.project_vote_cooldowns[project_id] = cooldown
        self._emit("VoteCooldownUpdated", f"project_id={project_id}", f"cooldown={cooldown}")

 #
 # === PROJECT REGISTRY ===
 #

    @public
    def create_project(
        self,
        ctx: Context,
        owner: Address,
        exchange_token: TokenUid,
        name: str,
        asso_name: str,
        description: str,
        required_amount: int,
        required_vote_percentage: int,
        vote_cooldown: int,
        donation_fee_bps: int,
        threshold_budgets: list[int],
    ) -> int:
        """
        Updater-only: register a project and its ordered threshold budgets.

        Budgets are per-tranche amounts; threshold i opens its vote once funding
        reaches the sum of budgets 0..i. Returns the new project id.
        """
        self._require_not_paused()
        self._require_role(ctx, UPDATER_ROLE)

        if not self.supported_tokens.get(exchange_token, False):
            raise TokenNotSupported("Exchange token is not supported")
        if len(threshold_budgets) == 0:
            raise ZeroThresholds("Need at least one threshold")
        if required_amount <= 0:
            raise ZeroRequiredAmount("Required amount must be > 0")
        if self._is_null(owner):
            raise ZeroAddress("Project owner cannot be the zero address")
        if vote_cooldown <= 0:
            raise ZeroVoteCooldown("Vote cooldown must be > 0")
        if required_vote_percentage <= 0:
            raise ZeroRequiredVotePercentage("Required vote percentage must be > 0")
        if required_vote_percentage > BPS_DENOMINATOR:
            raise CantGoAbove10000("Required vote percentage cannot exceed 10000")
        self._assert_bps(donation_fee_bps)
        for budget in threshold_budgets:
            if budget < 0:
                raise NegativeValue("Threshold budgets must be >= 0")

        project_id = self.project_count
        offset = self.threshold_count

        self.project_owners[project_id] = owner
        self.project_tokens[project_id] = exchange_token
        self.project_names[project_id] = name
        self.project_asso_names[project_id] = asso_name
        self.project_descriptions[project_id] = description

        self.project_required_amounts[project_id] = required_amount
        self.project_current_amounts[project_id] = 0
        self.project_available_to_withdraw[project_id] = 0

        self.project_current_thresholds[project_id] = 0
        self.project_threshold_offsets[project_id] = offset
        self.project_nb_thresholds[project_id] = len(threshold_budgets)

        self.project_required_vote_percentages[project_id] = required_vote_percentage
        self.project_donation_fees[project_id] = donation_fee_bps
        self.project_vote_cooldowns[project_id] = vote_cooldown
        self.project_active[project_id] = True

        slot = offset
        for budget in threshold_budgets:
            self.threshold_budgets[slot] = budget
            self.threshold_in_session[slot] = False
            self.threshold_positive_votes[slot] = 0
            self.threshold_negative_votes[slot] = 0
            slot += 1

        self.threshold_count = slot
        self.project_count = project_id + 1

        self.log.info("project created", project_id=project_id, thresholds=len(threshold_budgets))
        self._emit("ProjectCreated", f"project_id={project_id}", f"owner={owner.hex()}")
        return project_id

 #
 # === DONATIONS ===
 #

    @public(allow_deposit=True)
    def donate(self, ctx: Context, project_id: int, amount: int) -> None:
        """
        Donate `amount` (gross) of the project's exchange token.

        The call must carry a single deposit of exactly `amount`. The fee goes to
        the token's fee pool; the net amount is credited to the project and may
        open the current threshold's vote session.
        """
        self._require_not_paused()
        donor = self._get_caller_id(ctx)

        self._assert_project_exists(project_id)
        if amount <= 0:
            raise ZeroAmount("Donation amount must be > 0")
        if not self.project_active[project_id]:
            raise ProjectNotActive("Project is not active")

        fee, net = self._split_donation(project_id, amount)
        if amount < self.min_donation or net <= 0:
            raise AmountTooSmall("Donation amount is too small")

        token_uid = self.project_tokens[project_id]
        self._take_donation_deposit(ctx, token_uid, amount)

        self.fee_balances[token_uid] = self.fee_balances.get(token_uid, 0) + fee

        key = self._donation_key(project_id, donor)
        self.donations[key] = self.donations.get(key, 0) + amount

        self.project_current_amounts[project_id] += net

        if self.project_current_thresholds[project_id] >= self.project_nb_thresholds[project_id]:
            # every tranche already approved
            self.project_available_to_withdraw[project_id] += net
        else:
            self._maybe_open_session(project_id)

        self.log.debug("donation recorded", project_id=project_id, amount=amount, fee=fee, net=net)
        self._emit("DonatedToProject", f"donor={donor.hex()}", f"project_id={project_id}", f"amount={amount}")

 #
 # === VOTING ===
 #

    @public
    def vote(self, ctx: Context, project_id: int, approve: bool) -> None:
        """Donor-only: cast the single ballot allowed on the current threshold."""
        self._require_not_paused()
        voter = self._get_caller_id(ctx)

        self._assert_project_exists(project_id)
        if self.donations.get(self._donation_key(project_id, voter), 0) <= 0:
            raise NotADonator("Only donors can vote")

        index = self.project_current_thresholds[project_id]
        if index >= self.project_nb_thresholds[project_id]:
            raise NotInVotingSession("Every threshold has already passed")

        slot = self._threshold_slot(project_id, index)
        if not self.threshold_in_session[slot]:
            raise NotInVotingSession("Threshold is not in a voting session")

        ballot_key = self._ballot_key(slot, voter)
        if ballot_key in self.ballots:
            raise CanOnlyVoteOnce("Already voted on this threshold")

        self.ballots[ballot_key] = approve
        if approve:
            self.threshold_positive_votes[slot] += 1
        else:
            self.threshold_negative_votes[slot] += 1

        self._emit("VoteCast", f"project_id={project_id}", f"threshold={index}", f"approve={approve}")

    @public
    def end_voting(self, ctx: Context, project_id: int) -> None:
        """
        Updater-only: close the current threshold's session and deliberate.

        Passes iff positive * 10000 // total > required_vote_percentage (ties fail).
        A pass releases the threshold budget and may open the next session.
        """
        self._require_not_paused()
        self._require_role(ctx, UPDATER_ROLE)
        self._assert_project_exists(project_id)

        index = self.project_current_thresholds[project_id]
        if index >= self.project_nb_thresholds[project_id]:
            raise NotInVotingSession("Every threshold has already passed")

        slot = self._threshold_slot(project_id, index)
        if not self.threshold_in_session[slot]:
            raise NotInVotingSession("Threshold is not in a voting session")

        positive = self.threshold_positive_votes[slot]
        total = positive + self.threshold_negative_votes[slot]
        if total == 0:
            raise CantDeliberateWithoutVotes("No votes were cast in this session")

        self.threshold_in_session[slot] = False

        ratio = positive * BPS_DENOMINATOR // total
        passed = ratio > self.project_required_vote_percentages[project_id]

        self.log.info("threshold deliberated", project_id=project_id, threshold=index, ratio=ratio, passed=passed)
        self._emit("ThresholdDeliberated", f"project_id={project_id}", f"threshold={index}", f"passed={passed}")

        if not passed:
            return

        self.project_current_thresholds[project_id] = index + 1
        self.project_available_to_withdraw[project_id] += self.threshold_budgets[slot]

        # cascade: at most the next threshold, itself gated by a vote
        self._maybe_open_session(project_id)

 #
 # === WITHDRAWALS ===
 #

    @public(allow_withdrawal=True)
    def withdraw_funds(self, ctx: Context, project_id: int) -> None:
        """Owner-only: withdraw every released unit of the project's exchange token."""
        self._require_not_paused()
        caller = self._get_caller_id(ctx)

        self._assert_project_exists(project_id)
        if caller != self.project_owners[project_id]:
            raise NotProjectOwner("Only the project owner can withdraw funds")

        available = self.project_available_to_withdraw[project_id]
        if available <= 0:
            raise NoFundsToWithdraw("No released funds to withdraw")

        token_uid = self.project_tokens[project_id]
        self._process_withdraw(ctx, token_uid, available)
        self.project_available_to_withdraw[project_id] = 0

        self.log.info("funds withdrawn", project_id=project_id, amount=available)
        self._emit(
            "WithdrewFunds",
            f"owner={caller.hex()}",
            f"project_id={project_id}",
            f"token={token_uid.hex()}",
            f"amount={available}",
        )

    @public(allow_withdrawal=True)
    def withdraw_fees(self, ctx: Context, token_uid: TokenUid) -> None:
        """Withdrawer-only: withdraw the whole fee pool of `token_uid`."""
        self._require_not_paused()
        caller = self._require_role(ctx, WITHDRAWER_ROLE)

        if self._is_null(token_uid):
            raise ZeroAddress("Token uid cannot be the null token")

        balance = self.fee_balances.get(token_uid, 0)
        if balance <= 0:
            raise NoFeesToWithdraw("No fees available for this token")

        self._process_withdraw(ctx, token_uid, balance)
        self.fee_balances[token_uid] = 0

        self.log.info("fees withdrawn", amount=balance)
        self._emit("WithdrewFees", f"to={caller.hex()}", f"token={token_uid.hex()}", f"amount={balance}")

    @public
    def withdraw_funds_to_other_project(self, ctx: Context, from_project_id: int, to_project_id: int) -> None:
        """
        Updater-only: move the whole current_amount of one project into another.

        Both projects must use the same exchange token and the destination must be
        active. Released balances (available_to_withdraw) are not touched.
        """
        self._require_not_paused()
        self._require_role(ctx, UPDATER_ROLE)

        self._assert_project_exists(from_project_id)
        self._assert_project_exists(to_project_id)
        if from_project_id == to_project_id:
            raise CantWithdrawToSameProject("Source and destination must differ")
        if self.project_tokens[from_project_id] != self.project_tokens[to_project_id]:
            raise DifferentExchangeToken("Projects use different exchange tokens")
        if not self.project_active[to_project_id]:
            raise ProjectNotActive("Destination project is not active")

        amount = self.project_current_amounts[from_project_id]
        if amount <= 0:
            raise NoFundsToWithdraw("Source project has no funds")

        self.project_current_amounts[from_project_id] = 0
        self.project_current_amounts[to_project_id] += amount

        self.log.info("funds moved", from_project_id=from_project_id, to_project_id=to_project_id, amount=amount)
        self._emit(
            "FundsMovedToProject",
            f"from_project_id={from_project_id}",
            f"to_project_id={to_project_id}",
            f"amount={amount}",
        )

 #
 # === VIEWS ===
 #

    @view
    def get_config(self) -> ConfigView:
        return ConfigView(
            min_donation=self.min_donation,
            paused=self.paused,
            project_count=self.project_count,
        )

    @view
    def has_role(self, role: str, account: Address) -> bool:
        return self.role_members.get(self._role_key(role, account), False)

    @view
    def is_token_supported(self, token_uid: TokenUid) -> bool:
        if self._is_null(token_uid):
            return False
        return self.supported_tokens.get(token_uid, False)

    @view
    def get_project_count(self) -> int:
        return self.project_count

    @view
    def get_project(self, project_id: int) -> ProjectView:
        self._assert_project_exists(project_id)
        return ProjectView(
            owner=str(self.project_owners[project_id]),
            exchange_token=self.project_tokens[project_id].hex(),
            name=self.project_names[project_id],
            asso_name=self.project_asso_names[project_id],
            description=self.project_descriptions[project_id],
            required_amount=self.project_required_amounts[project_id],
            current_amount=self.project_current_amounts[project_id],
            available_to_withdraw=self.project_available_to_withdraw[project_id],
            current_threshold=self.project_current_thresholds[project_id],
            nb_of_thresholds=self.project_nb_thresholds[project_id],
            required_vote_percentage=self.project_required_vote_percentages[project_id],
            donation_fee_bps=self.project_donation_fees[project_id],
            vote_cooldown=self.project_vote_cooldowns[project_id],
            is_active=self.project_active[project_id],
        )

    @view
    def get_threshold(self, project_id: int, threshold_id: int) -> ThresholdView:
        self._assert_project_exists(project_id)
        self._assert_threshold_exists(project_id, threshold_id)

        slot = self._threshold_slot(project_id, threshold_id)
        return ThresholdView(
            budget=self.threshold_budgets[slot],
            is_voting_in_session=self.threshold_in_session[slot],
            positive_votes=self.threshold_positive_votes[slot],
            negative_votes=self.threshold_negative_votes[slot],
        )

    @view
    def get_threshold_vote(self, voter: Address, project_id: int, threshold_id: int) -> bool:
        """Return True if `voter` holds a ballot on the given threshold."""
        self._assert_project_exists(project_id)
        self._assert_threshold_exists(project_id, threshold_id)
        slot = self._threshold_slot(project_id, threshold_id)
        return self._ballot_key(slot, voter) in self.ballots

    @view
    def get_user_donations(self, donor: Address, project_id: int) -> int:
        """Return the cumulative gross amount `donor` gave to the project."""
        self._assert_project_exists(project_id)
        return self.donations.get(self._donation_key(project_id, donor), 0)

    @view
    def is_donator(self, donor: Address, project_id: int) -> bool:
        self._assert_project_exists(project_id)
        return self.donations.get(self._donation_key(project_id, donor), 0) > 0

    @view
    def get_fees_available_to_withdraw(self, token_uid: TokenUid) -> int:
        return self.fee_balances.get(token_uid, 0)

    @view
    def get_donation_quote(self, project_id: int, amount: int) -> DonationQuoteView:
        """Quote the fee/net split of a hypothetical donation (base units)."""
        self._assert_project_exists(project_id)
        if amount <= 0:
            raise ZeroAmount("Donation amount must be > 0")

        fee, net = self._split_donation(project_id, amount)
        return DonationQuoteView(fee=fee, net_amount=net)
