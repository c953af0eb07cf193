# Common diagnostic test types offered in the ordering UI. Orders may name others.
TEST_TYPES = (
    "Complete Blood Count (CBC)",
    "Blood Glucose",
    "Lipid Profile",
    "Liver Function Test (LFT)",
    "Kidney Function Test (KFT)",
    "Thyroid Function Test (TFT)",
    "Urinalysis",
    "HbA1c",
    "Vitamin D",
    "Vitamin B12",
    "Chest X-Ray",
    "ECG",
    "Ultrasound",
    "MRI Scan",
    "CT Scan",
    "Echocardiogram",
    "Mammogram",
    "Bone Density Scan",
)
