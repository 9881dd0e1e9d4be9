"""
constants.py - Closed enumerations and the extraction field set for profiles.

LOCKED WIRE LITERALS: these strings are stored verbatim in the profiles table
and matched exactly at save time. Note the en dash in the 501(c) designations.
"""
from proposalmatch.extraction.fields import FieldSet, FieldSpec

PRIMARY_CAUSE_AREAS: tuple[str, ...] = (
    "Agriculture & Food Security",
    "Animal Welfare",
    "Arts & Culture",
    "Arts Education",
    "Civic Engagement & Community Leadership",
    "Community & Economic Development",
    "Disability Services & Accessibility",
    "Disaster Relief & Public Safety",
    "Education",
    "Environment & Conservation",
    "Health & Wellness",
    "Housing & Homelessness",
    "Human Rights & Civil Liberties",
    "Human Services",
    "Information & Communications",
    "International & Global Affairs",
    "Mental Health & Wellness",
    "Philanthropy & Volunteering",
    "Poverty Alleviation",
    "Public Policy & Advocacy",
    "Religion & Spiritual Development",
    "Science & Technology",
    "Seniors & Aging Services",
    "Social Science Research",
    "Sports, Recreation & Leisure",
    "Youth Development",
    "Other",
)

POPULATIONS: tuple[str, ...] = (
    "Children & Youth",
    "Families",
    "Seniors / Elderly",
    "Women & Girls",
    "Men & Boys",
    "People Experiencing Homelessness",
    "People with Disabilities",
    "LGBTQ+ Communities",
    "Immigrants & Refugees",
    "Veterans & Military Families",
    "Indigenous / Native Communities",
    "Low-Income / Economically Disadvantaged Populations",
    "Racial & Ethnic Minorities",
    "Survivors of Domestic Violence / Abuse",
    "Patients / People with Chronic Illnesses",
    "Mental Health Communities",
    "Animals / Wildlife",
    "General Public / Community at Large",
    "Students / Educationally Underserved",
    "Artists & Creative Communities",
    "Other",
)

GEOGRAPHIC_FOCUS_OPTIONS: tuple[str, ...] = (
    "Local",
    "Regional",
    "National",
    "Global",
)

LEGAL_DESIGNATION_OPTIONS: tuple[str, ...] = (
    "501(c)(3) – Public Charity",
    "501(c)(3) – Private Foundation",
    "501(c)(4) – Social Welfare Organization",
    "501(c)(6) – Business League / Trade Association",
    "501(c)(7) – Social Club",
    "501(c)(19) – Veterans Organization",
    "501(c)(5) – Labor, Agricultural, or Horticultural Organization",
    "Fiscal Sponsor",
)

# Draft attribute -> allowed values, checked by workflow.validate_enumerations()
ENUMERATED_FIELDS: dict[str, tuple[str, ...]] = {
    "legal_designation": LEGAL_DESIGNATION_OPTIONS,
    "primary_cause_areas": PRIMARY_CAUSE_AREAS,
    "populations": POPULATIONS,
    "geographical_focus": GEOGRAPHIC_FOCUS_OPTIONS,
}

PROFILE_FIELD_SET = FieldSet(
    role="a non-profit organization profile parser",
    source="proposal/document text",
    fields=(
        FieldSpec("organizationName", "The name of the non-profit organization"),
        FieldSpec("ein", "Employer Identification Number (EIN/Tax ID)"),
        FieldSpec("missionStatement", "The organization's mission statement"),
        FieldSpec("yearFounded", "The year the organization was founded, as a four-digit string"),
        FieldSpec("locationServed", "Geographic location or area served by the organization"),
        FieldSpec("biggestAccomplishment", "Their biggest or most notable accomplishment"),
        FieldSpec("oneSentenceSummary", "What they do, summarized in one sentence"),
        FieldSpec("legalDesignation", "Legal designation of the organization",
                  choices=LEGAL_DESIGNATION_OPTIONS),
        FieldSpec("primaryCauseAreas", "Primary cause areas the organization works in",
                  many=True, choices=PRIMARY_CAUSE_AREAS),
        FieldSpec("populations", "Populations served by the organization",
                  many=True, choices=POPULATIONS),
        FieldSpec("geographicalFocus", "Geographical focus of the organization's work",
                  choices=GEOGRAPHIC_FOCUS_OPTIONS),
    ),
)
