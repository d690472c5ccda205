from dotenv import load_dotenv
from logging_config import setup_logging
from transport.twilio_placeholder import simulate_conversation

load_dotenv()

DEMO_CASES = {
    "hot": [
        "Phoenix",
        "single family house",
        "3",
        "around 450k",
        "asap, our lease ends next month",
        "pre-approved",
        "new job",
        "yes please, call me tomorrow",
    ],
    "warm_unknown_budget": [
        "Dallas",
        "condo",
        "2",
        "not sure yet",
        "asap",
        "cash",
        "job relocation",
        "no thanks, not now",
    ],
    "cold": [
        "idk",
        "don't know",
        "2 or 3",
        "unknown",
        "maybe next year",
        "not sure",
        "just browsing",
        "no",
    ],
}

def main():
    setup_logging("WARNING")
    print("=== WhatsApp Lead Bot Demo ===")
    for i, (label, turns) in enumerate(DEMO_CASES.items()):
        phone = f"1555000{i:04d}"
        print(f"\n--- CASE: {label} ({phone}) ---")
        results = simulate_conversation(phone, turns)
        for step, res in enumerate(results, 1):
            print(f"\nStep {step}:")
            print(" lead says:", res["inbound"])
            print(" bot says: ", res["reply"])
        lead = results[-1]["lead"]
        print("\n score:", lead.get("lead_score"), "| wants_meeting:", lead.get("wants_meeting"))

if __name__ == "__main__":
    main()
