"""
isa_table.py – curated mnemonic ⇒ ISA-extension knowledge base.

The table is hand-maintained domain knowledge, not derived data. It is
frozen into a :class:`ClassificationTable` once at import time and passed
explicitly to :func:`simdscan.classify`.
"""

from __future__ import annotations
from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

# ─────────────────────────  Instruction tables  ────────────────────────────────
# Format:  {ISA-name: {mnemonic1, mnemonic2, …}}
# Mnemonics are lower-case, exactly as GNU objdump prints them (AT&T syntax).
# Order matters: classification stops at the first ISA that claims a mnemonic.
ISA_TABLE: dict[str, set[str]] = {
    # —— SSE family ——
    "SSE": {
        "addps",
        "addss",
        "andnps",
        "andps",
        "cmpps",
        "cmpss",
        "comiss",
        "cvtpi2ps",
        "cvtps2pi",
        "cvtsi2ss",
        "cvtss2si",
        "cvttps2pi",
        "cvttss2si",
        "divps",
        "divss",
        "ldmxcsr",
        "maxps",
        "maxss",
        "minps",
        "minss",
        "movaps",
        "movhlps",
        "movhps",
        "movlhps",
        "movlps",
        "movmskps",
        "movntps",
        "movss",
        "movups",
        "mulps",
        "mulss",
        "orps",
        "rcpps",
        "rcpss",
        "rsqrtps",
        "rsqrtss",
        "shufps",
        "sqrtps",
        "sqrtss",
        "stmxcsr",
        "subps",
        "subss",
        "ucomiss",
        "unpckhps",
        "unpcklps",
        "xorps",
        # MMX-with-SSE regs
        "pavgb",
        "pavgw",
        "pextrw",
        "pinsrw",
        "pmaxsw",
        "pmaxub",
        "pminsw",
        "pminub",
        "pmovmskb",
        "psadbw",
        "pshufw",
    },
    "SSE2": {
        "addpd",
        "addsd",
        "andnpd",
        "andpd",
        "cmppd",
        "comisd",
        "cvtdq2pd",
        "cvtdq2ps",
        "cvtpd2dq",
        "cvtpd2pi",
        "cvtpd2ps",
        "cvtpi2pd",
        "cvtps2dq",
        "cvtps2pd",
        "cvtsd2si",
        "cvtsd2ss",
        "cvtsi2sd",
        "cvtss2sd",
        "cvttpd2dq",
        "cvttpd2pi",
        "cvttps2dq",
        "cvttsd2si",
        "divpd",
        "divsd",
        "maxpd",
        "maxsd",
        "minpd",
        "minsd",
        "movapd",
        "movhpd",
        "movlpd",
        "movmskpd",
        "movupd",
        "mulpd",
        "mulsd",
        "orpd",
        "shufpd",
        "sqrtpd",
        "sqrtsd",
        "subpd",
        "subsd",
        "ucomisd",
        "unpckhpd",
        "unpcklpd",
        "xorpd",
        "movdq2q",
        "movdqa",
        "movdqu",
        "movq2dq",
        "paddq",
        "pmuludq",
        "pshufhw",
        "pshuflw",
        "pshufd",
        "pslldq",
        "psrldq",
        "punpckhqdq",
        "punpcklqdq",
    },
    "SSE3": {
        "addsubpd",
        "addsubps",
        "haddpd",
        "haddps",
        "hsubpd",
        "hsubps",
        "movddup",
        "movshdup",
        "movsldup",
        "lddqu",
        "fisttp",
    },
    "SSSE3": {
        "psignw",
        "psignd",
        "psignb",
        "pshufb",
        "pmulhrsw",
        "pmaddubsw",
        "phsubw",
        "phsubsw",
        "phsubd",
        "phaddw",
        "phaddsw",
        "phaddd",
        "palignr",
        "pabsw",
        "pabsd",
        "pabsb",
    },
    "SSE4": {
        # SSE4.1 + SSE4.2 + POPCNT/LZCNT/CRC32
        "mpsadbw",
        "phminposuw",
        "pmulld",
        "pmuldq",
        "dpps",
        "dppd",
        "blendps",
        "blendpd",
        "blendvps",
        "blendvpd",
        "pblendvb",
        "pblendw",
        "pblenddw",
        "pminsb",
        "pmaxsb",
        "pminuw",
        "pmaxuw",
        "pminud",
        "pmaxud",
        "pminsd",
        "pmaxsd",
        "roundps",
        "roundss",
        "roundpd",
        "roundsd",
        "insertps",
        "pinsrb",
        "pinsrd",
        "pinsrq",
        "extractps",
        "pextrb",
        "pextrd",
        "pextrw",  # also under SSE, which is checked first
        "pextrq",
        "pmovsxbw",
        "pmovzxbw",
        "pmovsxbd",
        "pmovzxbd",
        "pmovsxbq",
        "pmovzxbq",
        "pmovsxwd",
        "pmovzxwd",
        "pmovsxwq",
        "pmovzxwq",
        "pmovsxdq",
        "pmovzxdq",
        "ptest",
        "pcmpeqq",
        "pcmpgtq",
        "packusdw",
        "pcmpestri",
        "pcmpestrm",
        "pcmpistri",
        "pcmpistrm",
        "crc32",
        "popcnt",
        "movntdqa",
        "extrq",
        "insertq",
        "movntsd",
        "movntss",
        "lzcnt",
    },
    # —— AVX family (scalar + packed). We lump AVX and AVX2 together here. ——
    "AVX": {
        # core three-operand forms (v-prefixed)
        "vaddps",
        "vaddpd",
        "vaddss",
        "vaddsd",
        "vsubps",
        "vsubpd",
        "vsubss",
        "vsubsd",
        "vmulps",
        "vmulpd",
        "vmulss",
        "vmulsd",
        "vdivps",
        "vdivpd",
        "vdivss",
        "vdivsd",
        "vmaxps",
        "vmaxpd",
        "vmaxss",
        "vmaxsd",
        "vminps",
        "vminpd",
        "vminss",
        "vminsd",
        "vxorps",
        "vxorpd",
        "vandps",
        "vandpd",
        # loads / stores / shuffles / blends
        "vmovaps",
        "vmovups",
        "vmovapd",
        "vmovupd",
        "vmovdqa",
        "vmovdqu",
        "vmovntps",
        "vmovntpd",
        "vbroadcastss",
        "vbroadcastsd",
        "vinsertf128",
        "vextractf128",
        "vblendps",
        "vblendpd",
        "vblendvps",
        "vblendvpd",
        "vpermilps",
        "vpermilpd",
        "vperm2f128",
        "vshufps",
        "vshufpd",
        "vzeroupper",
        # integer AVX2 subset (256-bit)
        "vpaddd",
        "vpsubd",
        "vpmulld",
        "vpmuludq",
        "vpackssdw",
        "vpackusdw",
        "vpcmpeqd",
        "vpcmpgtd",
        "vpminud",
        "vpmaxud",
        "vpminsd",
        "vpmaxsd",
        # gather/mask instructions (AVX2/AVX-512VL)
        "vgatherdps",
        "vgatherdpd",
        "vpgatherdd",
        "vpgatherdq",
        "vpmaskmovd",
        "vpmaskmovq",
        "vmaskmovps",
        "vmaskmovpd",
        # FMA (FMA3)
        "vfmadd213pd",
        "vfmadd231pd",
        "vfmadd132pd",
        "vfmsub213pd",
        "vfmsub231pd",
        "vfmsub132pd",
        "vfnmadd213pd",
        "vfnmadd231pd",
        "vfnmadd132pd",
    },
    # —— AVX-512 (any flavour counts as AVX-512 use) ——
    "AVX-512": {
        # zmm forms of the plain AVX ops are already claimed by "AVX" above,
        # so only mnemonics unique to AVX-512 are listed here.
        "kaddd",
        "kandd",
        "korw",
        "kxorq",  # mask regs
        "vcompresspd",
        "vexpandps",
        "vpermb",
        "vpmovm2d",
        "vpconflictd",
        "vpternlogd",
        "vpshldv",
        "vpopcntd",
        "vscalefpd",
        "vrndscaleps",
    },
}


class ClassificationTable(Mapping):
    """Read-only {ISA ⇒ frozenset(mnemonics)} view with first-match lookup."""

    def __init__(self, table: Mapping[str, Iterable[str]]):
        self._sets = MappingProxyType(
            {isa: frozenset(m.lower() for m in mnems) for isa, mnems in table.items()}
        )

    def __getitem__(self, isa: str) -> frozenset[str]:
        return self._sets[isa]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sets)

    def __len__(self) -> int:
        return len(self._sets)

    def __repr__(self) -> str:
        sizes = ", ".join(f"{isa}={len(m)}" for isa, m in self._sets.items())
        return f"ClassificationTable({sizes})"

    @property
    def isas(self) -> tuple[str, ...]:
        return tuple(self._sets)

    def contains(self, isa: str, mnemonic: str) -> bool:
        """True if *isa* claims *mnemonic*; unknown ISAs claim nothing."""
        mset = self._sets.get(isa)
        return mset is not None and mnemonic in mset

    def match(self, mnemonic: str) -> Optional[str]:
        """Return the first ISA (table order) claiming *mnemonic*, else None."""
        for isa, mset in self._sets.items():
            if mnemonic in mset:
                # Stop at first match: an instruction belongs to exactly one table
                return isa
        return None

    def overlaps(self) -> dict[str, list[str]]:
        """
        Mnemonics listed under more than one ISA.

        Returns {mnemonic ⇒ [ISA, …]} in table order; empty when disjoint.
        """
        owners: dict[str, list[str]] = {}
        for isa, mset in self._sets.items():
            for mnem in mset:
                owners.setdefault(mnem, []).append(isa)
        return {m: isas for m, isas in sorted(owners.items()) if len(isas) > 1}


DEFAULT_TABLE = ClassificationTable(ISA_TABLE)
