"""Extract patient fields from Jotform submission answers.

Pure functions. An operator-configured field mapping is authoritative when it
names a question that is present in the submission. Otherwise the extractor
falls back to heuristics over the answers' names and labels, which keeps
unconfigured locations usable at the cost of occasionally picking the wrong
question.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from app.constants import UNKNOWN
from app.schemas.field_mapping import FieldMapping, FieldRole
from app.schemas.jotform import Answer, RawSubmission
from app.schemas.patient import ExtractedPatient

logger = logging.getLogger(__name__)

# Keyword fallback, tried in order against each answer's name and label.
# Within a role the more specific keywords come first.
FALLBACK_KEYWORDS: tuple[tuple[FieldRole, tuple[str, ...]], ...] = (
    (
        FieldRole.PATIENT_NAME,
        ("name", "fullname", "full_name", "patient_name", "patient"),
    ),
    (
        FieldRole.ID_DOCUMENT,
        ("id_document", "iddocument", "identification", "id"),
    ),
    (
        FieldRole.DR_SCRIPT,
        ("dr_script", "doctor_script", "prescription", "script", "doctors", "dr", "medical"),
    ),
    (
        FieldRole.OUTCOME_LETTER,
        ("outcome_letter", "section21", "section_21", "section 21", "outcome", "letter"),
    ),
    (
        FieldRole.SAHPRA_INVOICE,
        ("sahpra_invoice", "invoice", "sahpra"),
    ),
)

# Sub-field aliases seen in Jotform full name answers
_PREFIX_KEYS = ("prefix", "title")
_FIRST_NAME_KEYS = ("first", "firstname", "first_name", "given")
_MIDDLE_NAME_KEYS = ("middle", "middlename", "middle_name")
_LAST_NAME_KEYS = ("last", "lastname", "last_name", "surname", "family")

FULLNAME_CONTROL = "control_fullname"

_DOCUMENT_FIELDS: tuple[tuple[FieldRole, str], ...] = (
    (FieldRole.ID_DOCUMENT, "patient_id_document_url"),
    (FieldRole.DR_SCRIPT, "dr_script_url"),
    (FieldRole.SAHPRA_INVOICE, "sahpra_invoice_url"),
    (FieldRole.OUTCOME_LETTER, "outcome_letter_url"),
)


class NameParts(NamedTuple):
    full_name: str
    prefix: str | None = None
    first: str | None = None
    last: str | None = None


def keywords_for(role: FieldRole) -> tuple[str, ...]:
    """Fallback keywords for a role."""
    for candidate, keywords in FALLBACK_KEYWORDS:
        if candidate is role:
            return keywords
    return ()


def _has_value(answer: Answer) -> bool:
    value = answer.value
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


def _label_matches(answer: Answer, keyword: str) -> bool:
    keyword = keyword.lower()
    name = (answer.name or "").lower()
    text = (answer.text or "").lower()
    return keyword in name or keyword in text


def match_answer(answers: Mapping[str, Answer], keywords: Iterable[str]) -> Answer | None:
    """Find the first answer whose name or label contains a keyword.

    Keywords are tried in order, each against every answer, so an earlier
    keyword always beats a later one. Answers without a value are skipped.
    """
    for keyword in keywords:
        for answer in answers.values():
            if _has_value(answer) and _label_matches(answer, keyword):
                return answer
    return None


def _first_present(data: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _has_name_parts(data: Mapping[str, Any]) -> bool:
    return bool(
        _first_present(data, _FIRST_NAME_KEYS)
        or _first_present(data, _MIDDLE_NAME_KEYS)
        or _first_present(data, _LAST_NAME_KEYS)
    )


def _name_from_parts(data: Mapping[str, Any]) -> NameParts | None:
    """Assemble a name from structured sub-fields."""
    prefix = _first_present(data, _PREFIX_KEYS)
    first = _first_present(data, _FIRST_NAME_KEYS)
    middle = _first_present(data, _MIDDLE_NAME_KEYS)
    last = _first_present(data, _LAST_NAME_KEYS)

    full_name = " ".join(" ".join(p for p in (prefix, first, middle, last) if p).split())
    if not full_name:
        return None
    return NameParts(full_name, prefix or None, first or None, last or None)


def _name_from_display(display: str) -> NameParts:
    """Use a formatted name verbatim, splitting first/last on the first space."""
    parts = display.split(None, 1)
    if len(parts) == 2:
        return NameParts(display, None, parts[0], parts[1])
    return NameParts(display)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return " ".join(str(v).strip() for v in value.values() if v and str(v).strip())
    if isinstance(value, list):
        return " ".join(str(v).strip() for v in value if v and str(v).strip())
    return str(value).strip()


def _name_from_configured_answer(answer: Answer) -> NameParts | None:
    if isinstance(answer.value, dict):
        return _name_from_parts(answer.value)
    if answer.pretty_format and answer.pretty_format.strip():
        return _name_from_display(answer.pretty_format.strip())
    text = _stringify(answer.value)
    return NameParts(text) if text else None


def _scan_for_full_name(answers: Mapping[str, Answer]) -> NameParts | None:
    """Find the first answer that looks like a full name."""
    for answer in answers.values():
        if isinstance(answer.value, dict) and _has_name_parts(answer.value):
            parts = _name_from_parts(answer.value)
            if parts:
                return parts
        if answer.type == FULLNAME_CONTROL and answer.pretty_format and answer.pretty_format.strip():
            return _name_from_display(answer.pretty_format.strip())
    return None


def _scan_by_keyword(answers: Mapping[str, Answer]) -> NameParts | None:
    answer = match_answer(answers, keywords_for(FieldRole.PATIENT_NAME))
    if answer is None:
        return None
    text = _stringify(answer.value) or (answer.pretty_format or "").strip()
    return NameParts(text) if text else None


def extract_name(answers: Mapping[str, Answer], mapping: FieldMapping | None) -> NameParts:
    """Resolve the patient name.

    Precedence: configured name field, then a full-name looking answer, then
    a keyword match on field names and labels, then "Unknown".
    """
    field_id = mapping.field_id_for(FieldRole.PATIENT_NAME) if mapping else None
    if field_id and field_id in answers:
        parts = _name_from_configured_answer(answers[field_id])
        if parts:
            return parts
        logger.debug("Configured name field %s is empty, using fallback", field_id)

    return _scan_for_full_name(answers) or _scan_by_keyword(answers) or NameParts(UNKNOWN)


def file_url(answer: Answer | None) -> str | None:
    """URL held by a file upload answer; the first one for multi-file uploads."""
    if answer is None:
        return None
    value = answer.value
    if isinstance(value, list):
        value = next((v for v in value if isinstance(v, str) and v.strip()), None)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_document_url(
    answers: Mapping[str, Answer],
    role: FieldRole,
    mapping: FieldMapping | None,
) -> str | None:
    """Resolve the document URL for a role, or None when nothing matches."""
    field_id = mapping.field_id_for(role) if mapping else None
    if field_id and field_id in answers:
        return file_url(answers[field_id])
    return file_url(match_answer(answers, keywords_for(role)))


def extract_patient(submission: RawSubmission, mapping: FieldMapping | None) -> ExtractedPatient:
    """Normalize one submission's answers into patient fields.

    Missing documents are returned as None; they mark incomplete compliance,
    not a failed extraction.
    """
    if mapping is not None and mapping.is_empty:
        mapping = None

    answers = submission.answers
    name = extract_name(answers, mapping)
    documents = {
        column: extract_document_url(answers, role, mapping)
        for role, column in _DOCUMENT_FIELDS
    }

    uploaded_at = None
    if documents["outcome_letter_url"]:
        uploaded_at = submission.updated_at or submission.created_at

    return ExtractedPatient(
        patient_full_name=name.full_name,
        name_prefix=name.prefix,
        first_name=name.first,
        last_name=name.last,
        outcome_letter_uploaded_at=uploaded_at,
        **documents,
    )
