"""
FCRA Credit Card Fraud - Complaint Content
Eman Youssef v. Equifax, Experian, Trans Union (E.D.N.Y.)

Legal analysis (step 3):
  3 causes of action   →  § 1681e(b), § 1681i(a), § 1681m(a)
  6 statutory violations

Preview document:
  9 sections - caption, complaint intro, jurisdiction & venue, parties,
  factual allegations, two causes of action, prayer for relief, jury demand
"""

# ── Helper ──────────────────────────────────────────────────────────────────
_CAPTION_INDENT = "\t" * 41
_CIVIL_ACTION_INDENT = "\t" * 57
_CAPTION_RULE = "_" * 76

DEFAULT_SOURCE_DOCS = [
    "Attorney_Notes.txt",
    "Adverse_Action_Letter_Cap_One.pdf",
    "Civil_Cover_Sheet.txt",
    "Complaint_Final.docx",
]

EXTRACTION_DATE = "June 5, 2025"

PREVIEW_TITLE = "COMPLAINT FOR VIOLATIONS OF THE FAIR CREDIT REPORTING ACT"


# ═════════════════════════════════════════════════════════════════════════════
# CAUSES OF ACTION
# ═════════════════════════════════════════════════════════════════════════════

CAUSES_OF_ACTION = [
    {
        "title": "Negligent Non-Compliance with FCRA",
        "description": (
            "Defendants negligently failed to follow reasonable procedures to assure "
            "maximum possible accuracy of consumer credit information"
        ),
        "statutory_basis": "15 U.S.C. § 1681e(b)",
        "source_doc": "Complaint_Final.docx",
        "elements": [
            "Duty to maintain reasonable procedures",
            "Failure to assure maximum possible accuracy",
            "Reporting of inaccurate information",
            "Proximately caused damages to consumer",
        ],
    },
    {
        "title": "Willful Non-Compliance with FCRA",
        "description": (
            "Defendants willfully failed to conduct reasonable reinvestigation upon "
            "consumer dispute"
        ),
        "statutory_basis": "15 U.S.C. § 1681i(a)",
        "source_doc": "Attorney_Notes.txt",
        "elements": [
            "Received consumer dispute",
            "Failed to conduct reasonable reinvestigation",
            "Willful or reckless disregard for consumer rights",
            "Continued reporting of disputed information",
        ],
    },
    {
        "title": "Failure to Provide Required Notices",
        "description": "Defendants failed to provide adverse action notices as required by FCRA",
        "statutory_basis": "15 U.S.C. § 1681m(a)",
        "source_doc": "Adverse_Action_Letter_Cap_One.pdf",
        "elements": [
            "Use of consumer report in adverse action",
            "Failure to provide timely notice",
            "Inadequate disclosure of consumer rights",
            "Damages from lack of notice",
        ],
    },
]


# ═════════════════════════════════════════════════════════════════════════════
# STATUTORY VIOLATIONS
# ═════════════════════════════════════════════════════════════════════════════

LEGAL_VIOLATIONS = [
    {
        "statute": "15 U.S.C. § 1681e(b)",
        "violation_type": "Negligent Failure - Reasonable Procedures",
        "description": (
            "Consumer reporting agency failed to follow reasonable procedures to assure "
            "maximum possible accuracy of information concerning the consumer"
        ),
        "source_doc": "Complaint_Final.docx",
        "penalties": "Actual damages, attorney fees, and costs",
    },
    {
        "statute": "15 U.S.C. § 1681i(a)(1)(A)",
        "violation_type": "Willful Failure - Reinvestigation Duties",
        "description": (
            "Upon dispute, consumer reporting agency failed to conduct reasonable "
            "reinvestigation to determine whether the disputed information is inaccurate"
        ),
        "source_doc": "Attorney_Notes.txt",
        "penalties": "Actual damages OR statutory damages $100-$1,000, plus attorney fees",
    },
    {
        "statute": "15 U.S.C. § 1681i(a)(5)(A)",
        "violation_type": "Failure to Delete - Disputed Information",
        "description": (
            "Failed to promptly delete inaccurate or unverifiable information from "
            "consumer's file following dispute"
        ),
        "source_doc": "Attorney_Notes.txt",
        "penalties": "Actual damages, attorney fees, and costs",
    },
    {
        "statute": "15 U.S.C. § 1681c(a)(2)",
        "violation_type": "Reporting Prohibited Information",
        "description": (
            "Continued reporting of adverse account information beyond the permissible "
            "time periods"
        ),
        "source_doc": "Adverse_Action_Letter_Cap_One.pdf",
        "penalties": "Actual damages, attorney fees, and costs",
    },
    {
        "statute": "15 U.S.C. § 1681m(a)",
        "violation_type": "Adverse Action Notice Violations",
        "description": (
            "Failed to provide required adverse action notices with consumer reporting "
            "agency information"
        ),
        "source_doc": "Adverse_Action_Letter_Cap_One.pdf",
        "penalties": "Actual damages, attorney fees, and costs",
    },
    {
        "statute": "15 U.S.C. § 1681n",
        "violation_type": "Willful Non-Compliance - Civil Liability",
        "description": "Pattern of willful non-compliance with FCRA requirements causing consumer harm",
        "source_doc": "Complaint_Final.docx",
        "penalties": (
            "Actual damages OR $100-$1,000 statutory damages, plus punitive damages "
            "and attorney fees"
        ),
    },
]


# ═════════════════════════════════════════════════════════════════════════════
# PREVIEW DOCUMENT SECTIONS
# ═════════════════════════════════════════════════════════════════════════════

PREVIEW_SECTIONS = [
    {
        "title": "UNITED STATES DISTRICT COURT",
        "content": (
            "EASTERN DISTRICT OF NEW YORK\n\n"
            "EMAN YOUSSEF,\n\n"
            f"{_CAPTION_INDENT}Plaintiff,\n\n"
            f"v.{_CIVIL_ACTION_INDENT}Civil Action No. _______\n\n"
            "EQUIFAX INFORMATION SERVICES LLC,\n"
            "EXPERIAN INFORMATION SOLUTIONS INC.,\n"
            "TRANS UNION LLC,\n\n"
            f"{_CAPTION_INDENT}Defendants.\n\n"
            f"{_CAPTION_RULE}"
        ),
    },
    {
        "title": "COMPLAINT",
        "content": (
            "Plaintiff Eman Youssef, by and through undersigned counsel, brings this action "
            "against Defendants for violations of the Fair Credit Reporting Act (\"FCRA\"), "
            "15 U.S.C. § 1681 et seq., and alleges as follows:"
        ),
    },
    {
        "title": "I. JURISDICTION AND VENUE",
        "content": (
            "1. This Court has subject matter jurisdiction over this action pursuant to "
            "15 U.S.C. § 1681p and 28 U.S.C. § 1331, as this action arises under federal law.\n\n"
            "2. Venue is proper in this District pursuant to 28 U.S.C. § 1391(b) because a "
            "substantial part of the events giving rise to the claims occurred in this judicial "
            "district, and Defendants conduct business in this District.\n\n"
            "3. This Court has personal jurisdiction over the Defendants because they conduct "
            "substantial business within this District and/or the acts giving rise to this "
            "lawsuit occurred within this District."
        ),
    },
    {
        "title": "II. PARTIES",
        "content": (
            "4. Plaintiff Eman Youssef is an individual residing in Queens, New York. "
            "Plaintiff may be reached at 347.891.5584.\n\n"
            "5. Upon information and belief, Defendant EQUIFAX INFORMATION SERVICES LLC is a "
            "limited liability company organized and existing under the laws of Georgia, with "
            "its principal place of business located in Atlanta, Georgia. Equifax is a "
            "\"consumer reporting agency\" as that term is defined in 15 U.S.C. § 1681a(f).\n\n"
            "6. Upon information and belief, Defendant EXPERIAN INFORMATION SOLUTIONS INC. is a "
            "corporation organized and existing under the laws of Delaware, with its principal "
            "place of business located in Costa Mesa, California. Experian is a \"consumer "
            "reporting agency\" as that term is defined in 15 U.S.C. § 1681a(f).\n\n"
            "7. Upon information and belief, Defendant TRANS UNION LLC is a limited liability "
            "company organized and existing under the laws of Delaware, with its principal "
            "place of business located in Chicago, Illinois. Trans Union is a \"consumer "
            "reporting agency\" as that term is defined in 15 U.S.C. § 1681a(f)."
        ),
    },
    {
        "title": "III. FACTUAL ALLEGATIONS",
        "content": (
            "8. During the period from June 30, 2024 through July 30, 2024, Plaintiff was "
            "traveling in Egypt.\n\n"
            "9. While Plaintiff was traveling in Egypt, fraudulent charges totaling "
            "approximately $7,500 were made on Plaintiff's TD Bank credit card account.\n\n"
            "10. Upon discovering the fraudulent charges, Plaintiff immediately contacted TD "
            "Bank to report the unauthorized transactions and dispute the charges.\n\n"
            "11. Plaintiff filed a police report regarding the fraudulent transactions and "
            "provided all necessary documentation to TD Bank.\n\n"
            "12. Despite Plaintiff's timely notification and dispute of the fraudulent charges, "
            "the unauthorized accounts and/or adverse information related to these fraudulent "
            "transactions continue to appear on Plaintiff's consumer credit reports maintained "
            "by Defendants.\n\n"
            "13. The continued reporting of this fraudulent and inaccurate information has "
            "damaged Plaintiff's credit score and creditworthiness.\n\n"
            "14. As a result of Defendants' actions, Plaintiff has been denied credit and has "
            "suffered actual damages."
        ),
    },
    {
        "title": "IV. FIRST CAUSE OF ACTION",
        "content": (
            "NEGLIGENT NON-COMPLIANCE WITH THE FCRA\n"
            "(15 U.S.C. § 1681e(b) and 15 U.S.C. § 1681o)\n\n"
            "15. Plaintiff incorporates by reference each and every allegation contained in "
            "the preceding paragraphs as if fully set forth herein.\n\n"
            "16. At all times relevant hereto, Defendants were \"consumer reporting agencies\" "
            "within the meaning of 15 U.S.C. § 1681a(f).\n\n"
            "17. Defendants owed a duty to Plaintiff to follow reasonable procedures to assure "
            "maximum possible accuracy of the information concerning Plaintiff in Plaintiff's "
            "consumer credit file.\n\n"
            "18. Defendants negligently violated this duty by failing to follow reasonable "
            "procedures to assure the maximum possible accuracy of the information in "
            "Plaintiff's credit file.\n\n"
            "19. As a direct and proximate result of Defendants' negligent violations of the "
            "FCRA, Plaintiff has suffered actual damages."
        ),
    },
    {
        "title": "V. SECOND CAUSE OF ACTION",
        "content": (
            "WILLFUL NON-COMPLIANCE WITH THE FCRA\n"
            "(15 U.S.C. § 1681i(a) and 15 U.S.C. § 1681n)\n\n"
            "20. Plaintiff incorporates by reference each and every allegation contained in "
            "the preceding paragraphs as if fully set forth herein.\n\n"
            "21. Upon receiving notice of Plaintiff's dispute regarding the inaccurate "
            "information, Defendants were required to conduct a reasonable reinvestigation of "
            "the disputed information.\n\n"
            "22. Defendants willfully failed to conduct a reasonable reinvestigation as "
            "required by 15 U.S.C. § 1681i(a).\n\n"
            "23. Defendants' conduct was willful and in reckless disregard of Plaintiff's "
            "rights under the FCRA.\n\n"
            "24. As a direct and proximate result of Defendants' willful violations of the "
            "FCRA, Plaintiff has suffered actual damages and is entitled to statutory damages."
        ),
    },
    {
        "title": "VI. PRAYER FOR RELIEF",
        "content": (
            "WHEREFORE, Plaintiff respectfully requests that this Court:\n\n"
            "A. Enter judgment in favor of Plaintiff and against Defendants;\n\n"
            "B. Award Plaintiff actual damages pursuant to 15 U.S.C. § 1681o and § 1681n;\n\n"
            "C. Award Plaintiff statutory damages in the amount of not less than $100 nor more "
            "than $1,000 for each willful violation pursuant to 15 U.S.C. § 1681n;\n\n"
            "D. Award Plaintiff punitive damages pursuant to 15 U.S.C. § 1681n;\n\n"
            "E. Award Plaintiff reasonable attorney's fees and costs pursuant to "
            "15 U.S.C. § 1681o and § 1681n;\n\n"
            "F. Grant such other and further relief as this Court may deem just and proper."
        ),
    },
    {
        "title": "JURY DEMAND",
        "content": (
            "Plaintiff hereby demands a trial by jury on all issues so triable.\n\n\n"
            "Respectfully submitted,\n\n"
            "_________________________\n"
            "Kevin Mallon, Esq.\n"
            "Attorney for Plaintiff\n"
            "State Bar No. [Number]\n"
            "[Address]\n"
            "[Phone]\n"
            "[Email]"
        ),
    },
]
