"""
Per-vendor statement formats.

A VendorFormat bundles everything the pipeline needs to know about one
MFS export layout: header synonyms, the default header list used when
detection fails, critical fields and the header-scoring constants. Formats
are frozen; use ``with_overrides`` to recalibrate.
"""

from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .catalog import CanonicalField as F
from .catalog import HeaderCatalog


class ScoringWeights(BaseModel):
    """Header-row scoring weights. Tuned on sample statements."""

    model_config = ConfigDict(frozen=True)

    mapped: float = 1
    critical: float = 3
    reference_label: float = 2
    data_like_penalty: float = -3
    insufficient_critical_penalty: float = -5
    critical_bonus: float = 2


class VendorFormat(BaseModel):
    """Immutable configuration for one vendor statement layout."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    synonyms: Dict[str, F]
    default_headers: Tuple[str, ...]
    # Labels that, when seen verbatim (case-insensitive), strongly suggest a header row
    reference_headers: Tuple[str, ...] = ()
    critical_fields: FrozenSet[F] = Field(default_factory=frozenset)
    critical_minimum: int = 3
    min_non_empty_cells: int = 3
    scan_depth: int = 10
    confidence_threshold: float = 0.9
    weights: ScoringWeights = ScoringWeights()
    serial_label_pattern: str = r"^s[il]\.?(\s?no\.?)?$"
    # Used when a row has no explicit DR/CR column
    direction_keywords: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)
    date_formats: Tuple[str, ...] = ()

    _catalog: Optional[HeaderCatalog] = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        self._catalog = HeaderCatalog(self.synonyms)

    @property
    def catalog(self) -> HeaderCatalog:
        return self._catalog

    @property
    def reference_labels(self) -> frozenset:
        labels = self.reference_headers or self.default_headers
        return frozenset(h.strip().lower() for h in labels if h.strip())

    @property
    def required_critical_count(self) -> int:
        """Fewest distinct critical fields a trusted header row must carry."""
        return self.critical_minimum - 1

    def with_overrides(self, **changes: Any) -> "VendorFormat":
        """Return a copy with some settings replaced; None values are ignored."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return self
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)


NAGAD = VendorFormat(
    name="nagad",
    label="Nagad",
    synonyms={
        # Serial
        "si": F.SERIAL, "sl": F.SERIAL, "slno": F.SERIAL, "serialno": F.SERIAL,
        "serialnumber": F.SERIAL, "sl.": F.SERIAL, "si.": F.SERIAL, "s.l": F.SERIAL,
        "s l": F.SERIAL, "ক্রমিকনং": F.SERIAL,
        # Date / time
        "txndatetime": F.TIMESTAMP, "transactiondatetime": F.TIMESTAMP,
        "datetime": F.TIMESTAMP, "dateandtime": F.TIMESTAMP, "date time": F.TIMESTAMP,
        "time": F.TIMESTAMP, "date": F.TIMESTAMP, "txn date time": F.TIMESTAMP,
        "লেনদেনেরসময়": F.TIMESTAMP,
        # Transaction id
        "txnid": F.TRANSACTION_ID, "transactionid": F.TRANSACTION_ID, "trxid": F.TRANSACTION_ID,
        "txno": F.TRANSACTION_ID, "transactionno": F.TRANSACTION_ID, "txn id": F.TRANSACTION_ID,
        "txn_id": F.TRANSACTION_ID, "লেনদেনআইডি": F.TRANSACTION_ID,
        # Transaction type
        "txntype": F.TRANSACTION_TYPE, "transactiontype": F.TRANSACTION_TYPE,
        "type": F.TRANSACTION_TYPE, "particulars": F.TRANSACTION_TYPE,
        "details": F.TRANSACTION_TYPE, "description": F.TRANSACTION_TYPE,
        "বিবরণ": F.TRANSACTION_TYPE,
        # Statement account
        "statementforacc": F.STATEMENT_ACCOUNT, "statementforaccount": F.STATEMENT_ACCOUNT,
        "accountnumber": F.STATEMENT_ACCOUNT, "accno": F.STATEMENT_ACCOUNT,
        "account no": F.STATEMENT_ACCOUNT, "statement for acc": F.STATEMENT_ACCOUNT,
        # Counterparty account
        "txnwithacc": F.COUNTERPARTY_ACCOUNT, "transactionwithaccount": F.COUNTERPARTY_ACCOUNT,
        "otherpartyaccount": F.COUNTERPARTY_ACCOUNT, "tofromaccount": F.COUNTERPARTY_ACCOUNT,
        "toaccount": F.COUNTERPARTY_ACCOUNT, "fromaccount": F.COUNTERPARTY_ACCOUNT,
        "txn with acc": F.COUNTERPARTY_ACCOUNT,
        # Channel
        "channel": F.CHANNEL, "মাধ্যম": F.CHANNEL,
        # Reference
        "reference": F.REFERENCE, "remarks": F.REFERENCE, "narration": F.REFERENCE,
        "সূত্র": F.REFERENCE,
        # DR / CR
        "txntypedrcr": F.DIRECTION, "drcr": F.DIRECTION, "debitcredit": F.DIRECTION,
        "creditdebit": F.DIRECTION, "transactioncategory": F.DIRECTION,
        "category": F.DIRECTION, "txn type dr cr": F.DIRECTION, "ডেবিটক্রেডিট": F.DIRECTION,
        # Amount
        "txnamt": F.AMOUNT, "transactionamount": F.AMOUNT, "amount": F.AMOUNT,
        "debitamount": F.AMOUNT, "creditamount": F.AMOUNT, "txn amt": F.AMOUNT,
        "টাকারপরিমাণ": F.AMOUNT,
        # Balance after transaction
        "availableblcaftertxn": F.BALANCE_AFTER, "availablebalanceaftertxn": F.BALANCE_AFTER,
        "availablebalance": F.BALANCE_AFTER, "balance": F.BALANCE_AFTER,
        "closingbalance": F.BALANCE_AFTER, "available blc after txn": F.BALANCE_AFTER,
        "অবশিষ্টব্যালেন্স": F.BALANCE_AFTER,
        # Status
        "status": F.STATUS, "transactionstatus": F.STATUS, "অবস্থা": F.STATUS,
    },
    # Column layout of OCR-derived statement dumps
    default_headers=(
        "SI.", "TXN_DATE_TIME", "TXN ID", "TXN TYPE", "STATEMENT_FOR_ACC",
        "TXN_WITH_ACC", "CHANNEL", "REFERENCE", "TXN_TYPE_DR_CR",
        "TXN_AMT", "AVAILABLE_BLC_AFTER_TXN", "STATUS",
    ),
    critical_fields=frozenset({
        F.TRANSACTION_ID, F.TIMESTAMP, F.AMOUNT,
        F.STATEMENT_ACCOUNT, F.DIRECTION, F.TRANSACTION_TYPE,
    }),
    date_formats=("%d/%m/%Y %H:%M:%S",),
)


BKASH = VendorFormat(
    name="bkash",
    label="bKash",
    synonyms={
        "sl": F.SERIAL, "ক্রমিক নং": F.SERIAL, "ক্রমিক": F.SERIAL, "si": F.SERIAL,
        "trx id": F.TRANSACTION_ID, "trxid": F.TRANSACTION_ID,
        "transaction id": F.TRANSACTION_ID, "ট্রানজেকশন আইডি": F.TRANSACTION_ID,
        "transaction date": F.TIMESTAMP, "date time": F.TIMESTAMP,
        "লেনদেনের সময়": F.TIMESTAMP, "তারিখ ও সময়": F.TIMESTAMP,
        "trx type": F.TRANSACTION_TYPE, "transaction type": F.TRANSACTION_TYPE,
        "type": F.TRANSACTION_TYPE, "particulars": F.TRANSACTION_TYPE,
        "লেনদেনের বিবরণ": F.TRANSACTION_TYPE,
        "sender": F.SENDER, "প্রেরক": F.SENDER,
        "receiver": F.RECEIVER, "প্রাপক": F.RECEIVER,
        "receiver name": F.COUNTERPARTY_NAME,
        "reference": F.REFERENCE, "ref": F.REFERENCE, "রেফারেন্স": F.REFERENCE,
        "transacted amount": F.AMOUNT, "amount": F.AMOUNT,
        "টাকার পরিমাণ": F.AMOUNT, "পরিমাণ": F.AMOUNT,
        "fee": F.FEE, "ফি": F.FEE,
        "balance": F.BALANCE_AFTER, "বর্তমান ব্যালেন্স": F.BALANCE_AFTER,
        "ব্যালেন্স": F.BALANCE_AFTER,
    },
    default_headers=(
        "SL", "Trx Id", "Transaction Date", "Trx Type", "Sender", "Receiver",
        "Receiver Name", "Reference", "Transacted Amount", "Fee", "Balance",
    ),
    critical_fields=frozenset({
        F.TRANSACTION_ID, F.TIMESTAMP, F.SENDER, F.RECEIVER, F.AMOUNT,
    }),
    confidence_threshold=0.8,
    direction_keywords={
        "DEBIT": ("send money", "payment", "cash out", "airtime topup", "mobile recharge"),
        "CREDIT": ("cash in", "receive money", "received", "add money"),
    },
    date_formats=("%d-%b-%y %I:%M:%S %p",),
)


VENDOR_FORMATS: Mapping[str, VendorFormat] = MappingProxyType(
    {fmt.name: fmt for fmt in (NAGAD, BKASH)}
)


def get_vendor_format(name: str) -> VendorFormat:
    """Look up a built-in vendor format by name (case-insensitive)."""
    key = str(name or "").strip().lower()
    if key not in VENDOR_FORMATS:
        raise ValueError(
            f"Unknown vendor format '{name}'. Known: {', '.join(sorted(VENDOR_FORMATS))}"
        )
    return VENDOR_FORMATS[key]
