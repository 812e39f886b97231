from lumos_drift.cli.lumos_drift import main

if __name__ == "__main__":
    main()
