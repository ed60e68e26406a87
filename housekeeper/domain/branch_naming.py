import hashlib
import re
from typing import Sequence

from housekeeper.domain.errors import version_control_error


MAX_BRANCH_NAME_LENGTH = 60
_TRUNCATED_PREFIX_LENGTH = 46
_DIGEST_LENGTH = 15
_NON_WORD_PATTERN = re.compile(r"[^\w]+")


def branch_name(identifiers: Sequence[str]) -> str:
    # Sem identificadores nao existe identidade estavel entre execucoes.
    if not identifiers:
        raise version_control_error("cannot derive a branch name from empty identifiers")

    # Cada identificador vira hyphen-case e os pedacos sao unidos com "--".
    name = "--".join(_NON_WORD_PATTERN.sub("-", identifier) for identifier in identifiers)

    # Nomes longos sao truncados; o sufixo SHA-256 mantem o nome unico e deterministico.
    if len(name) > MAX_BRANCH_NAME_LENGTH:
        digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]
        name = f"{name[:_TRUNCATED_PREFIX_LENGTH]}-{digest}"

    return name
