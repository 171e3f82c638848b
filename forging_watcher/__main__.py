from forging_watcher.cli import main

if __name__ == "__main__":
    main()
