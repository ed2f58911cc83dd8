from typing import List

from dotenv import load_dotenv

from config import Settings

# (setting, expected key prefix, where the key comes from)
KEYS = [
    ("GROQ_API_KEY", "gsk_", "Groq"),
    ("STABILITY_API_KEY", "sk-", "Stability AI"),
]


def check_keys(settings: Settings) -> List[str]:
    report = []
    for name, prefix, provider in KEYS:
        key = getattr(settings, name)
        if not key:
            report.append(f"❌ FAILURE: Python cannot find '{name}'.")
            report.append("Check: Did you name the file '.env' exactly? Is it in the same folder?")
        elif not key.startswith(prefix):
            report.append(f"⚠️ WARNING: Your {name} looks weird. It starts with '{key[:4]}...'")
            report.append(f"{provider} keys normally start with '{prefix}'. Check for typos.")
        else:
            report.append(f"✅ SUCCESS: {name} found!")
            report.append(f"Key loaded: {key[:10]}... (hidden)")
    return report


if __name__ == "__main__":
    # Force reload of the .env file
    load_dotenv(override=True)

    print("\n--- DIAGNOSTIC REPORT ---")
    for line in check_keys(Settings()):
        print(line)
    print("-------------------------\n")
