"""
nearweb3 Constants

This module consolidates the protocol constants of the NEAR EVM contract and
the environment configuration used throughout the codebase. Constants are
organized by category for easy reference and maintenance.
"""
import ast
import re

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

PROVIDER_DEFAULTS = {
    'NEARWEB3_NETWORK':                'local',
    'NEARWEB3_HOST':                   '127.0.0.1',
    'NEARWEB3_PORT':                   '8545',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
    'LOG_INCLUDE_REQUEST_CONTENT':     'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# CLIENT IDENTITY
# ==================================================================================
NODE_VERSION = '0.4.0'
CLIENT_NAME = 'nearweb3'


# ==================================================================================
# NETWORK VERSIONS (net_version)
# ==================================================================================
NEAR_NET_VERSION = '1313161554'
NEAR_NET_VERSION_TEST = '1313161555'
NEAR_NET_VERSION_BETANET = '1313161556'


# ==================================================================================
# EVM CONTRACT METHOD NAMES
# ==================================================================================
# Account the EVM contract is deployed to on every preset network
DEFAULT_EVM_ACCOUNT_ID = 'evm'

DEPLOY_CODE_METHOD_NAME = 'deploy_code'
CALL_METHOD_NAME = 'call'
RAW_CALL_METHOD_NAME = 'raw_call'
META_CALL_METHOD_NAME = 'meta_call'
DEPOSIT_METHOD_NAME = 'deposit'
WITHDRAW_METHOD_NAME = 'withdraw'
TRANSFER_METHOD_NAME = 'transfer'
VIEW_METHOD_NAME = 'view'
GET_BALANCE_METHOD_NAME = 'get_balance'
GET_STORAGE_AT_METHOD_NAME = 'get_storage_at'
GET_CODE_METHOD_NAME = 'code_at'
GET_NONCE_METHOD_NAME = 'get_nonce'


# ==================================================================================
# PROTOCOL PARAMETERS
# ==================================================================================
# Gas attached to every function call (300 Tgas)
GAS_AMOUNT = 300_000_000_000_000

# A chunk whose tx_root equals this value carries no transactions
EMPTY_TX_ROOT = '11111111111111111111111111111111'

# NEAR timestamps are nanoseconds; Ethereum clients expect milliseconds here
TIMESTAMP_DIVISOR = 1_000_000

# Byte widths of the EVM contract argument layouts
ADDRESS_LENGTH = 20
AMOUNT_LENGTH = 32
HASH_LENGTH = 32
LENGTH_PREFIX_SIZE = 4


# ==================================================================================
# ETHEREUM PLACEHOLDERS
# ==================================================================================
# NEAR has no proof-of-work nonce, uncles, receipts trie or log bloom. These
# fixed values keep the shape Ethereum clients validate against.
ZERO_ADDRESS = '0x' + '00' * ADDRESS_LENGTH
ZERO_HASH = '0x' + '00' * HASH_LENGTH
EMPTY_BLOCK_NONCE = '0x0000000000000000'
EMPTY_UNCLE_HASH = '0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347'
EMPTY_LOGS_BLOOM = '0x' + '00' * 256
PLACEHOLDER_SIGNATURE_VALUE = '0x0'


# ==================================================================================
# VALIDATION PATTERNS
# ==================================================================================
# Regex pattern for validating hexadecimal strings (optional 0x prefix)
VALID_HEX_PATTERN = re.compile(r'^(0[xX])?[0-9a-fA-F]*$')

# Regex pattern for validating 0x-prefixed 20-byte addresses
VALID_ADDRESS_PATTERN = re.compile(r'^0[xX][0-9a-fA-F]{40}$')

# NEAR account ids: lowercase alphanumerics separated by single '-', '_' or '.'
VALID_ACCOUNT_ID_PATTERN = re.compile(r'^(([a-z\d]+[\-_])*[a-z\d]+\.)*([a-z\d]+[\-_])*[a-z\d]+$')
ACCOUNT_ID_MIN_LENGTH = 2
ACCOUNT_ID_MAX_LENGTH = 64

BLOCK_TAGS = ('latest', 'earliest', 'pending', 'safe', 'finalized', 'genesis')


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = PROVIDER_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
