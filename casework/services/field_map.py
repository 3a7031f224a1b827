"""Multilingual form header to field name mapping"""

COLUMN_MAP = {
    "Timestamp": "timestamp",
    "Email address": "email",
    "البريد الإلكتروني": "email",
    "Personal Data Protection": "personal_data_protection",
    "حماية البيانات الشخصية": "personal_data_protection",
    "Protection des données personnelles": "personal_data_protection",
    "ID Famille": "family_id",
    "Family ID": "family_id",
    "معرّف العائلة": "family_id",
    "Identifiant Famille": "family_id",
    "ID de la famille": "family_id",
    "Nom de famille": "last_name",
    "اللقب": "last_name",
    "Last Name": "last_name",
    "Prénom de la personne à contacter": "first_name",
    "إسم الشخص الذي يمكن التواصل معه": "first_name",
    "First Name of the Contact Person": "first_name",
    "Numéro de téléphone de la personne à contacter": "phone",
    "رقم هاتف الشخص الذي يمكن التواصل معه": "phone",
    "Phone Number of the Contact Person": "phone",
    "Autre numéro où nous pourrons vous joindre (optionnel)": "phone_secondary",
    "رقم هاتف آخر يمكننا التواصل معك من خلاله": "phone_secondary",
    "Another phone number where we can reach you": "phone_secondary",
    "Adresse": "address",
    "العنوان": "address",
    "Address": "address",
    "Code postale": "postal_code",
    "الرمز البريدي": "postal_code",
    "Postal Code": "postal_code",
    "Ville": "city",
    "المدينة": "city",
    "City": "city",
    "Combien d'adultes vivent actuellement dans votre foyer ?": "adult_count",
    "كم عدد البالغين الذين يعيشون حاليًا في منزلك؟": "adult_count",
    "How many adults currently live in your household?": "adult_count",
    "Combien d'enfants vivent actuellement dans votre foyer ?": "child_count",
    "كم عدد الأطفال الذين يعيشون حاليًا في منزلك؟": "child_count",
    "How many children currently live in your household?": "child_count",
    "Êtes-vous actuellement hébergé(e) par une personne ou une organisation ?": "hosted",
    "هل تتم استضافتك حاليًا من قبل شخص أو  منظمة ؟": "hosted",
    "Are you currently being hosted by a person or an organization?": "hosted",
    "Par qui êtes-vous hébergé(e) ?": "hosted_by",
    "من يتكفّل بإقامتك؟": "hosted_by",
    "Who is hosting you?": "hosted_by",
    "Décrivez brièvement votre situation actuelle": "circumstance",
    "صف وضعك الحالي باختصار": "circumstance",
    "Briefly describe your current situation": "circumstance",
    "Ressentit": "feeling",
    "Spécificités": "specifics",
    "Criticité (0-5)": "severity",
    "Langue": "language",
    "Type de pièce d'identité": "id_type",
    "نوع وثيقة الهوية": "id_type",
    "Type of Identification Document": "id_type",
    "Justificatif d'identité ou de résidence": "identity_doc",
    "إثبات الهوية أو الإقامة": "identity_doc",
    "Proof of Identity or Residence": "identity_doc",
    "Attestation de la CAF (paiement et/ou quotient familial)": "aid_doc",
    "شهادة من CAF (الدفع و/أو الحصّة العائلية)": "aid_doc",
    "CAF Certificate (Payment and/or Family Quotient)": "aid_doc",
    "Attestation de la CAF (paiement et/ou quotient familial) - (optionnel)": "aid_doc_optional",
    "شهادة من CAF (الدفع و/أو الحصّة العائلية) - (اختياري)": "aid_doc_optional",
    "CAF Certificate (optional)": "aid_doc_optional",
    "Travaillez-vous actuellement, vous ou votre conjoint(e) ?": "working",
    "هل تعمل حالياً، أنت أو زوجك/زوجتك؟": "working",
    "Are you or your spouse currently working?": "working",
    "Combien de jours par semaine travaillez-vous ?": "work_days",
    "كم يوماً في الأسبوع تعمل؟": "work_days",
    "How many days per week do you work?": "work_days",
    "Dans quel secteur travaillez-vous ?": "work_sector",
    "في أي قطاع تعمل؟": "work_sector",
    "Which sector do you work in?": "work_sector",
    "Percevez-vous actuellement des aides d'autres organismes ?": "other_aid",
    "هل تتلقون حالياً مساعدات من منظمات أخرى ؟": "other_aid",
    "Are you currently receiving support from other organizations?": "other_aid",
    "Veuillez soumettre tous justificatif de ressources": "resource_doc",
    "يرجى تقديم جميع إثباتات الموارد": "resource_doc",
    "Please submit any proof of income or financial support": "resource_doc",
}

REFUSAL_PHRASES = (
    "Je refuse que mes données personnelles soient collectées et traitées",
    "أرفض جمع ومعالجة بياناتي الشخصية",
    "I refuse to have my personal data collected and processed",
)

UPDATE_KEYWORDS = (
    "update",
    "mise à jour",
    "maj",
    "modification",
    "تحديث",
    "actualisation",
    "modifier",
)

# Origin sheet names of the three intake forms
ORIGIN_LANGUAGE = {
    "Familles – FR": "Français",
    "Familles – AR": "Arabe",
    "Familles – EN": "Anglais",
}
